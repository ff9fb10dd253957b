"""Shared click options and helpers for icns commands."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import reduce
from typing import Any

import click

from icns.api import IconService
from icns.config import Config
from icns.exceptions import ConfigError
from icns.models import DEFAULT_MIN_SCORE, DEFAULT_SIZE, AutoSelect, MatchMode, SourceMode
from icns.output import Envelope, OutputFormat, print_result

PREFIX_PATTERN = re.compile(r"^[a-z0-9-]+$", re.IGNORECASE)

Decorator = Callable[[Callable[..., Any]], Callable[..., Any]]


def _compose(*decorators: Decorator) -> Decorator:
    # Applied bottom-up so --help lists options in declaration order.
    return lambda f: reduce(lambda acc, decorator: decorator(acc), reversed(decorators), f)


def _enum_callback(enum_type: type) -> Callable[[click.Context, click.Parameter, Any], Any]:
    def convert(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
        return None if value is None else enum_type(value)

    return convert


def parse_prefix_csv(ctx: click.Context, param: click.Parameter, value: str | None) -> tuple[str, ...] | None:
    """Split a comma-separated prefix list, validate, lowercase and dedupe it."""
    if not value:
        return None
    prefixes = [part.strip() for part in value.split(",") if part.strip()]
    if not prefixes:
        raise click.BadParameter("must contain at least one prefix.")
    for prefix in prefixes:
        if not PREFIX_PATTERN.match(prefix):
            raise click.BadParameter(f"contains invalid prefix: {prefix}. Expected [a-z0-9-]+.")
    return tuple(dict.fromkeys(prefix.lower() for prefix in prefixes))


def check_source_mode(source: SourceMode, offline: bool) -> None:
    if offline and source is SourceMode.API:
        raise click.UsageError("--offline cannot be used with --source api.")


format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.JSON.value,
    show_default=True,
    callback=_enum_callback(OutputFormat),
    help="Output format",
)

stdin_option = click.option("--stdin", "use_stdin", is_flag=True, help="Read newline-separated input from stdin")

source_options = _compose(
    click.option(
        "--source",
        type=click.Choice([s.value for s in SourceMode]),
        default=SourceMode.AUTO.value,
        show_default=True,
        callback=_enum_callback(SourceMode),
        help="Where candidates come from",
    ),
    click.option("--offline", is_flag=True, help="Disable network and use the local index only"),
)

resolve_options = _compose(
    click.option(
        "--match",
        type=click.Choice([m.value for m in MatchMode]),
        default=MatchMode.EXACT.value,
        show_default=True,
        callback=_enum_callback(MatchMode),
        help="Resolution mode",
    ),
    source_options,
    click.option(
        "--collection",
        "collections",
        callback=parse_prefix_csv,
        help="Comma-separated collection prefixes to search",
    ),
    click.option(
        "--prefer-prefix",
        "prefer_prefixes",
        callback=parse_prefix_csv,
        help="Comma-separated prefixes to boost in fuzzy mode",
    ),
    click.option(
        "--auto-select",
        type=click.Choice([a.value for a in AutoSelect]),
        callback=_enum_callback(AutoSelect),
        help="Pick the best fuzzy candidate instead of failing as ambiguous",
    ),
    click.option(
        "--min-score",
        type=click.FloatRange(min=0, max=1),
        default=DEFAULT_MIN_SCORE,
        show_default=True,
        help="Minimum fuzzy score",
    ),
)

render_options = _compose(
    click.option("--size", type=click.IntRange(min=1), default=DEFAULT_SIZE, show_default=True, help="PNG width/height"),
    click.option("--bg", default="transparent", show_default=True, help="Background color"),
    click.option("--fg", help="Foreground color (default: keep original colors)"),
    click.option(
        "--stroke-width",
        type=click.FloatRange(min=0, min_open=True),
        help="Override stroke width for stroked icons",
    ),
    click.option("--force", is_flag=True, help="Overwrite existing files"),
    click.option("--dry-run", is_flag=True, help="Resolve and plan without writing files"),
)


def get_service(ctx: click.Context) -> IconService:
    """Service stored on the context, built from configuration on first use."""
    obj = ctx.ensure_object(dict)
    service = obj.get("service")
    if service is None:
        try:
            config = obj.get("config") or Config.load(obj.get("config_path"))
        except ConfigError as e:
            raise click.UsageError(e.message) from e
        service = IconService(config)
        obj["service"] = service
    return service


def require_argument(value: str | None, label: str) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        raise click.UsageError(f"{label} is required.")
    return trimmed


def read_stdin_lines() -> list[str]:
    stream = click.get_text_stream("stdin")
    lines = [line.strip() for line in stream.read().splitlines() if line.strip()]
    if not lines:
        raise click.UsageError("--stdin was set, but no non-empty lines were provided.")
    return lines


def parse_render_line(line: str, index: int) -> tuple[str, str]:
    """Split a ``<query-or-icon>\\t<output-path>`` stdin line."""
    query, sep, output = line.partition("\t")
    if not sep or not query.strip() or not output.strip():
        raise click.UsageError(f'Invalid render stdin line #{index + 1}. Expected "<query-or-icon>\\t<output-path>".')
    return query.strip(), output.strip()


def emit(ctx: click.Context, result: Envelope, output_format: OutputFormat) -> None:
    print_result(result, output_format)
    if not result.ok:
        ctx.exit(result.exit_code)


def emit_all(ctx: click.Context, results: Iterable[Envelope], output_format: OutputFormat) -> None:
    """Print every result; exit with the status of the first failure."""
    exit_code = 0
    for result in results:
        print_result(result, output_format)
        if not result.ok and exit_code == 0:
            exit_code = result.exit_code
    if exit_code:
        ctx.exit(exit_code)
