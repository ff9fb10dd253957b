"""Result envelope and its json/plain rendering."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import click

from icns.exceptions import IcnsError, exit_code_for

SCHEMA_VERSION = 1


class OutputFormat(str, Enum):
    JSON = "json"
    PLAIN = "plain"


@dataclass(frozen=True)
class Envelope:
    """``{schemaVersion, ok, data?, error?}`` returned by every operation."""

    ok: bool
    data: Any = None
    error: dict[str, Any] | None = None

    @property
    def code(self) -> str | None:
        return self.error["code"] if self.error else None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else exit_code_for(self.code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"schemaVersion": SCHEMA_VERSION, "ok": self.ok}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


def success(data: Any) -> Envelope:
    return Envelope(ok=True, data=data)


def failure(code: str, message: str, details: Any = None) -> Envelope:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return Envelope(ok=False, error=error)


def from_error(error: IcnsError) -> Envelope:
    return Envelope(ok=False, error=error.to_dict())


def plain_text(data: Any) -> str:
    """Best single-line-per-item rendering of ``data`` for ``--format plain``."""
    if isinstance(data, str):
        return data
    if isinstance(data, (list, tuple)):
        return "\n".join(str(item) for item in data)
    if isinstance(data, dict):
        if isinstance(data.get("items"), list):
            return "\n".join(str(item) for item in data["items"])
        for key in ("icon", "url"):
            if isinstance(data.get(key), str):
                return data[key]
    return json.dumps(data)


def print_result(result: Envelope, output_format: OutputFormat) -> None:
    if output_format is OutputFormat.PLAIN:
        if result.ok and result.data is not None:
            click.echo(plain_text(result.data))
        elif not result.ok:
            message = (result.error or {}).get("message", "Unknown error")
            click.echo(message, err=True)
        return
    click.echo(json.dumps(result.to_dict(), default=str))
