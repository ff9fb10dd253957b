"""Unit tests for icns.output (envelopes and their rendering)."""

import json

import pytest

from icns.exceptions import EXIT_CODES, NotFoundError, exit_code_for
from icns.output import Envelope, OutputFormat, failure, from_error, plain_text, print_result, success


class TestEnvelope:
    def test_success_dict(self):
        assert success({"icon": "mdi:home"}).to_dict() == {
            "schemaVersion": 1,
            "ok": True,
            "data": {"icon": "mdi:home"},
        }

    def test_failure_dict(self):
        result = failure("NOT_FOUND", "missing", {"query": "x"})
        assert result.to_dict() == {
            "schemaVersion": 1,
            "ok": False,
            "error": {"code": "NOT_FOUND", "message": "missing", "details": {"query": "x"}},
        }
        assert result.exit_code == 3

    def test_from_error(self):
        result = from_error(NotFoundError("gone"))
        assert result.code == "NOT_FOUND"
        assert "details" not in result.error

    @pytest.mark.parametrize("code,expected", sorted(EXIT_CODES.items()))
    def test_exit_codes(self, code, expected):
        assert failure(code, "x").exit_code == expected

    def test_unknown_code_exits_one(self):
        assert exit_code_for("SOMETHING_ELSE") == 1
        assert exit_code_for(None) == 1
        assert Envelope(ok=True).exit_code == 0


class TestPlainText:
    """Tests for plain_text()."""

    def test_string(self):
        assert plain_text("hello") == "hello"

    def test_list(self):
        assert plain_text(["a:x", "b:y"]) == "a:x\nb:y"

    def test_items(self):
        assert plain_text({"items": ["a:x", "b:y"], "total": 2}) == "a:x\nb:y"

    def test_icon_then_url(self):
        assert plain_text({"icon": "mdi:home", "url": "https://x"}) == "mdi:home"
        assert plain_text({"url": "https://x"}) == "https://x"

    def test_fallback_json(self):
        assert json.loads(plain_text({"removed": True})) == {"removed": True}


class TestPrintResult:
    def test_json_is_single_line(self, capsys):
        print_result(success({"icon": "mdi:home"}), OutputFormat.JSON)
        out = capsys.readouterr().out
        assert out.count("\n") == 1
        assert json.loads(out)["data"]["icon"] == "mdi:home"

    def test_json_error_goes_to_stdout(self, capsys):
        print_result(failure("NOT_FOUND", "missing"), OutputFormat.JSON)
        captured = capsys.readouterr()
        assert json.loads(captured.out)["error"]["code"] == "NOT_FOUND"
        assert captured.err == ""

    def test_plain_error_goes_to_stderr(self, capsys):
        print_result(failure("NOT_FOUND", "missing"), OutputFormat.PLAIN)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "missing"

    def test_plain_success(self, capsys):
        print_result(success({"icon": "mdi:home"}), OutputFormat.PLAIN)
        assert capsys.readouterr().out == "mdi:home\n"
