"""Unit tests for the icns command line.

Tests cover argument validation, stdin batches, exit codes and output
formats. Commands run against an IconService wired to in-memory fakes,
injected through the click context object.

Tests use CliRunner for isolated command invocation.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from conftest import FakeCatalog, FakeRasterizer, envelope, envelopes

from icns import __version__
from icns.api import IconService
from icns.cli.main import cli


@pytest.fixture
def invoke(runner: CliRunner, service: IconService):
    """Run the CLI with the fake-backed service."""

    def run(args: list[str], input: str | None = None):
        return runner.invoke(cli, args, input=input, obj={"service": service})

    return run


class TestCliBasics:
    def test_help_lists_commands(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("resolve", "render", "render-many", "fetch", "search", "preview", "collections", "index", "doctor"):
            assert command in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert __version__ in result.output

    def test_missing_config_file_is_usage_error(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "index", "status"], obj={})
        assert result.exit_code == 2
        assert "Config file not found" in result.output


class TestResolveCommand:
    """Tests for `icns resolve`."""

    def test_exact_json(self, invoke):
        result = invoke(["resolve", "mdi:home"])
        assert result.exit_code == 0
        assert envelope(result) == {"schemaVersion": 1, "ok": True, "data": {"icon": "mdi:home", "match": "exact"}}

    def test_plain(self, invoke):
        result = invoke(["resolve", "mdi:home", "--format", "plain"])
        assert result.stdout.strip() == "mdi:home"

    def test_not_found_exit_code(self, invoke):
        result = invoke(["resolve", "mdi:nope"])
        assert result.exit_code == 3
        assert envelope(result)["error"]["code"] == "NOT_FOUND"

    def test_fuzzy_with_preference(self, invoke, synced_store):
        result = invoke(
            ["resolve", "home", "--match", "fuzzy", "--prefer-prefix", "TABLER", "--auto-select", "top1"]
        )
        assert result.exit_code == 0
        assert envelope(result)["data"]["icon"] == "tabler:home"

    def test_ambiguous_exit_code(self, invoke, synced_store):
        result = invoke(["resolve", "home", "--match", "fuzzy"])
        assert result.exit_code == 8

    def test_stdin_exits_with_first_failure(self, invoke):
        result = invoke(["resolve", "--stdin"], input="mdi:home\n\nmdi:nope\nhome\n")
        printed = envelopes(result)
        assert [e["ok"] for e in printed] == [True, False, False]
        assert result.exit_code == 3

    def test_stdin_and_positional(self, invoke):
        result = invoke(["resolve", "mdi:home", "--stdin"], input="mdi:home\n")
        assert result.exit_code == 2
        assert "cannot be used with --stdin" in result.output

    def test_stdin_empty(self, invoke):
        result = invoke(["resolve", "--stdin"], input="\n  \n")
        assert result.exit_code == 2
        assert "no non-empty lines" in result.output

    def test_missing_query(self, invoke):
        result = invoke(["resolve"])
        assert result.exit_code == 2
        assert "query-or-icon is required" in result.output

    def test_offline_with_api_source(self, invoke):
        result = invoke(["resolve", "mdi:home", "--offline", "--source", "api"])
        assert result.exit_code == 2
        assert "--offline cannot be used with --source api" in result.output

    @pytest.mark.parametrize("value", ["md i", ",", "mdi;tabler"])
    def test_invalid_collection_csv(self, invoke, value):
        result = invoke(["resolve", "mdi:home", "--collection", value])
        assert result.exit_code == 2

    def test_collection_csv_ignores_empty_parts(self, invoke):
        result = invoke(["resolve", "mdi:home", "--collection", "MDI,,mdi,"])
        assert result.exit_code == 0

    def test_collection_restricts_exact_match(self, invoke):
        result = invoke(["resolve", "mdi:home", "--collection", "tabler"])
        assert result.exit_code == 3

    @pytest.mark.parametrize("value", ["-0.1", "1.5", "abc"])
    def test_min_score_out_of_range(self, invoke, value):
        result = invoke(["resolve", "home", "--match", "fuzzy", "--min-score", value])
        assert result.exit_code == 2

    def test_min_score_bounds_accepted(self, invoke, synced_store):
        result = invoke(["resolve", "home", "--match", "fuzzy", "--min-score", "1", "--auto-select", "top1"])
        assert result.exit_code == 0

    def test_invalid_match_mode(self, invoke):
        result = invoke(["resolve", "home", "--match", "loose"])
        assert result.exit_code == 2


class TestSearchCommand:
    def test_plain_lines(self, invoke, synced_store):
        result = invoke(["search", "home", "--limit", "2", "--format", "plain"])
        assert result.stdout.splitlines() == ["mdi:home", "tabler:home"]

    def test_stdin(self, invoke, synced_store):
        result = invoke(["search", "--stdin"], input="home\naccount\n")
        printed = envelopes(result)
        assert len(printed) == 2
        assert printed[1]["data"]["items"] == ["mdi:account"]

    def test_invalid_limit(self, invoke):
        result = invoke(["search", "home", "--limit", "0"])
        assert result.exit_code == 2


class TestRenderCommands:
    """Tests for `icns render`, `icns render-many` and `icns fetch`."""

    def test_render(self, invoke, rasterizer: FakeRasterizer, tmp_path: Path):
        output = tmp_path / "home.png"
        result = invoke(["render", "mdi:home", "-o", str(output), "--size", "64", "--bg", "#ffffff"])
        assert result.exit_code == 0
        assert output.exists()
        assert rasterizer.renders[0]["size"] == 64
        assert rasterizer.renders[0]["bg"] == "#ffffff"

    def test_render_requires_output(self, invoke):
        result = invoke(["render", "mdi:home"])
        assert result.exit_code == 2
        assert "--output is required" in result.output

    def test_render_invalid_size(self, invoke, tmp_path: Path):
        result = invoke(["render", "mdi:home", "-o", str(tmp_path / "a.png"), "--size", "0"])
        assert result.exit_code == 2

    def test_render_stdin(self, invoke, rasterizer: FakeRasterizer, tmp_path: Path):
        lines = f"mdi:home\t{tmp_path / 'a.png'}\ntabler:user\t{tmp_path / 'b.png'}\n"
        result = invoke(["render", "--stdin"], input=lines)
        assert result.exit_code == 0
        assert len(envelopes(result)) == 2
        assert (tmp_path / "b.png").exists()

    def test_render_stdin_bad_line(self, invoke):
        result = invoke(["render", "--stdin"], input="mdi:home out.png\n")
        assert result.exit_code == 2
        assert "Invalid render stdin line #1" in result.output

    def test_render_existing_output(self, invoke, tmp_path: Path):
        output = tmp_path / "home.png"
        output.write_bytes(b"old")
        result = invoke(["render", "mdi:home", "-o", str(output)])
        assert result.exit_code == 6
        assert envelope(result)["error"]["code"] == "OUTPUT_EXISTS"

    def test_render_many(self, invoke, tmp_path: Path):
        manifest = tmp_path / "icons.csv"
        manifest.write_text(
            f"query,output,size\nmdi:home,{tmp_path / 'a.png'},48\ntabler:user,{tmp_path / 'b.png'},\n",
            encoding="utf-8",
        )
        result = invoke(["render-many", str(manifest), "--concurrency", "2", "--size", "16"])
        assert result.exit_code == 0
        report = envelope(result)["data"]
        assert report["succeeded"] == 2
        assert [item["data"]["size"] for item in report["items"]] == [48, 16]

    def test_render_many_failure(self, invoke, tmp_path: Path):
        manifest = tmp_path / "icons.json"
        manifest.write_text(
            json.dumps([{"query": "mdi:nope", "output": str(tmp_path / "a.png")}]),
            encoding="utf-8",
        )
        result = invoke(["render-many", str(manifest)])
        assert result.exit_code == 5
        assert envelope(result)["error"]["details"]["failed"] == 1

    def test_fetch(self, invoke, tmp_path: Path):
        output = tmp_path / "home.svg"
        result = invoke(["fetch", "mdi:home", "-o", str(output)])
        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8").startswith("<svg")

    def test_fetch_offline(self, invoke, tmp_path: Path):
        result = invoke(["fetch", "mdi:home", "-o", str(tmp_path / "a.svg"), "--offline"])
        assert result.exit_code == 2


class TestCollectionsCommand:
    def test_list(self, invoke):
        result = invoke(["collections", "list", "--limit", "2"])
        data = envelope(result)["data"]
        assert data["source"] == "api"
        assert len(data["items"]) == 2

    def test_info(self, invoke, synced_store):
        result = invoke(["collections", "info", "tabler", "--source", "index"])
        assert envelope(result)["data"]["sampleIcons"] == ["tabler:home", "tabler:user"]

    def test_info_not_found(self, invoke):
        result = invoke(["collections", "info", "nope"])
        assert result.exit_code == 3


class TestIndexCommand:
    """Tests for `icns index`."""

    def test_sync_status_clear(self, invoke, catalog: FakeCatalog):
        synced = invoke(["index", "sync", "--concurrency", "2"])
        assert synced.exit_code == 0
        assert envelope(synced)["data"]["collections"] == 3

        status = invoke(["index", "status"])
        assert envelope(status)["data"]["exists"] is True

        cleared = invoke(["index", "clear", "--format", "plain"])
        assert cleared.exit_code == 0
        assert json.loads(cleared.stdout.strip().splitlines()[-1])["removed"] is True

    def test_sync_failure(self, invoke, catalog: FakeCatalog):
        catalog.fail_prefixes.add("mdi")
        result = invoke(["index", "sync"])
        assert result.exit_code == 4

    def test_offline_resolution_after_sync(self, invoke, catalog: FakeCatalog):
        invoke(["index", "sync"])
        catalog.calls.clear()
        result = invoke(["resolve", "acc", "--match", "fuzzy", "--offline"])
        assert envelope(result)["data"]["icon"] == "mdi:account"
        assert catalog.calls == []


class TestDoctorAndPreview:
    def test_doctor_offline(self, invoke):
        result = invoke(["doctor", "--offline"])
        assert result.exit_code == 0
        assert envelope(result)["data"]["checks"]["api"]["skipped"] is True

    def test_preview_no_open(self, invoke):
        result = invoke(["preview", "home", "--no-open", "--format", "plain"])
        assert result.stdout.strip() == "https://icones.js.org/collection/all?s=home"

    def test_preview_browser_failure(self, invoke):
        with patch("icns.api.webbrowser.open", return_value=False):
            result = invoke(["preview", "home"])
        assert result.exit_code == 7
