"""Render manifest loading.

A manifest is an ordered list of render requests. Accepted layouts:

JSON
    An array of objects, or an object with an ``items`` array. Chosen for a
    ``.json`` suffix or when the content starts with ``[`` or ``{``.
YAML
    Same shapes as JSON, for ``.yaml``/``.yml`` files.
CSV
    A header row followed by one row per item (anything else).

Example YAML manifest::

    items:
      - query: home
        output: out/home.png
        size: 48
      - icon: mdi:github
        output: out/github.png
        prefer_prefixes: [mdi, simple-icons]

Only the query and output are required. Fields left out stay ``None`` and
fall back to the batch defaults when the item is rendered.
"""

from __future__ import annotations

import csv
import io
import json
import math
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from icns.exceptions import FilesystemError, ManifestError
from icns.models import AutoSelect, ManifestItem, MatchMode, SourceMode

E = TypeVar("E", bound=Enum)

TRUE_VALUES = {"1", "true", "yes", "y"}
FALSE_VALUES = {"0", "false", "no", "n"}

QUERY_KEYS = ("query", "queryOrIcon", "icon")
OUTPUT_KEYS = ("output", "path", "file")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _pick_first(source: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if not _is_blank(source.get(key)):
            return source[key]
    return None


def parse_bool(label: str, value: Any) -> bool | None:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    raise ManifestError(f"{label} must be boolean (true/false/1/0).")


def parse_number(label: str, value: Any) -> float | None:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise ManifestError(f"{label} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ManifestError(f"{label} must be a number.") from e
    if not math.isfinite(number):
        raise ManifestError(f"{label} must be a number.")
    return number


def parse_positive_int(label: str, value: Any) -> int | None:
    number = parse_number(label, value)
    if number is None:
        return None
    if number <= 0 or not number.is_integer():
        raise ManifestError(f"{label} must be a positive integer.")
    return int(number)


def parse_string_list(value: Any) -> tuple[str, ...] | None:
    if _is_blank(value):
        return None
    if isinstance(value, (list, tuple)):
        entries = [str(entry).strip() for entry in value]
    else:
        entries = [entry.strip() for entry in str(value).split(",")]
    filtered = tuple(dict.fromkeys(entry.lower() for entry in entries if entry))
    return filtered or None


def parse_enum(label: str, value: Any, enum_type: type[E]) -> E | None:
    if _is_blank(value):
        return None
    try:
        return enum_type(str(value).strip())
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise ManifestError(f"{label} must be one of: {allowed}.") from e


def _optional_text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def normalize_item(raw: Mapping[str, Any], index: int) -> ManifestItem:
    """Validate one raw manifest record (``index`` is 0-based)."""
    label = f"Manifest item #{index + 1}"
    query = str(_pick_first(raw, QUERY_KEYS) or "").strip()
    output = str(_pick_first(raw, OUTPUT_KEYS) or "").strip()

    if not query:
        raise ManifestError(f"{label}: query/queryOrIcon/icon is required.")
    if not output:
        raise ManifestError(f"{label}: output/path/file is required.")

    stroke_width = parse_number(f"{label} stroke_width", _pick_first(raw, ("stroke_width", "strokeWidth")))
    if stroke_width is not None and stroke_width <= 0:
        raise ManifestError(f"{label} stroke_width must be a positive number.")

    return ManifestItem(
        query=query,
        output=output,
        size=parse_positive_int(f"{label} size", raw.get("size")),
        bg=_optional_text(_pick_first(raw, ("bg", "background"))),
        fg=_optional_text(_pick_first(raw, ("fg", "foreground"))),
        stroke_width=stroke_width,
        match=parse_enum(f"{label} match", raw.get("match"), MatchMode),
        source=parse_enum(f"{label} source", raw.get("source"), SourceMode),
        offline=parse_bool(f"{label} offline", raw.get("offline")),
        collections=parse_string_list(_pick_first(raw, ("collections", "collection"))),
        prefer_prefixes=parse_string_list(
            _pick_first(raw, ("prefer_prefixes", "preferPrefixes", "prefer_prefix", "preferPrefix"))
        ),
        auto_select=parse_enum(f"{label} auto_select", _pick_first(raw, ("auto_select", "autoSelect")), AutoSelect),
        min_score=parse_number(f"{label} min_score", _pick_first(raw, ("min_score", "minScore"))),
        force=parse_bool(f"{label} force", raw.get("force")),
        dry_run=parse_bool(f"{label} dry_run", _pick_first(raw, ("dry_run", "dryRun"))),
    )


def _items_from_structure(data: Any, kind: str) -> list[ManifestItem]:
    if isinstance(data, list):
        values = data
    elif isinstance(data, dict) and isinstance(data.get("items"), list):
        values = data["items"]
    else:
        raise ManifestError(f"{kind} manifest must be an array or an object with an items array.")

    items: list[ManifestItem] = []
    for index, entry in enumerate(values):
        if not isinstance(entry, dict):
            raise ManifestError(f"Manifest item #{index + 1} must be an object.")
        items.append(normalize_item(entry, index))
    return items


def parse_json_manifest(text: str) -> list[ManifestItem]:
    try:
        data = json.loads(text.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON manifest: {e}") from e
    return _items_from_structure(data, "JSON")


def parse_yaml_manifest(text: str) -> list[ManifestItem]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML manifest: {e}") from e
    if data is None:
        return []
    return _items_from_structure(data, "YAML")


def parse_csv_manifest(text: str) -> list[ManifestItem]:
    rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff"))) if any(cell.strip() for cell in row)]
    if not rows:
        return []

    headers = [header.strip() for header in rows[0]]
    if not any(headers):
        raise ManifestError("CSV manifest is missing header row.")

    items: list[ManifestItem] = []
    for index, values in enumerate(rows[1:]):
        raw = {header: (values[i].strip() if i < len(values) else "") for i, header in enumerate(headers)}
        items.append(normalize_item(raw, index))
    return items


def load_manifest(path: Path) -> list[ManifestItem]:
    """Read and validate a manifest file.

    Raises:
        ManifestError: If the content is malformed.
        FilesystemError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"Manifest is not valid UTF-8: {path}", details={"path": str(path)}) from e
    except OSError as e:
        raise FilesystemError(
            f"Cannot read manifest: {path}", details={"path": str(path), "error": str(e)}
        ) from e

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return parse_yaml_manifest(text)
    stripped = text.lstrip("\ufeff").lstrip()
    if suffix == ".json" or stripped.startswith(("[", "{")):
        return parse_json_manifest(text)
    return parse_csv_manifest(text)
