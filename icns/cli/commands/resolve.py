"""Resolve and search commands."""

from __future__ import annotations

from typing import Any

import click

from icns.cli.options import (
    check_source_mode,
    emit,
    emit_all,
    format_option,
    get_service,
    parse_prefix_csv,
    read_stdin_lines,
    require_argument,
    resolve_options,
    source_options,
    stdin_option,
)
from icns.models import ResolveOptions, SourceMode
from icns.output import Envelope, OutputFormat


@click.command()
@click.argument("query_or_icon", required=False)
@stdin_option
@resolve_options
@format_option
@click.pass_context
def resolve(
    ctx: click.Context,
    query_or_icon: str | None,
    use_stdin: bool,
    output_format: OutputFormat,
    **options: Any,
) -> None:
    """Resolve a query or icon id to a canonical prefix:name."""
    parsed = ResolveOptions(**options)
    check_source_mode(parsed.source, parsed.offline)

    if use_stdin:
        if query_or_icon:
            raise click.UsageError("Positional <query-or-icon> cannot be used with --stdin.")
        lines = read_stdin_lines()
        service = get_service(ctx)
        emit_all(ctx, (service.resolve(line, parsed) for line in lines), output_format)
        return

    query = require_argument(query_or_icon, "query-or-icon")
    emit(ctx, get_service(ctx).resolve(query, parsed), output_format)


@click.command()
@click.argument("query", required=False)
@stdin_option
@source_options
@click.option("--collection", "collections", callback=parse_prefix_csv, help="Comma-separated collection prefixes")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True, help="Max results")
@format_option
@click.pass_context
def search(
    ctx: click.Context,
    query: str | None,
    use_stdin: bool,
    source: SourceMode,
    offline: bool,
    collections: tuple[str, ...] | None,
    limit: int,
    output_format: OutputFormat,
) -> None:
    """Search icons by query."""
    check_source_mode(source, offline)

    def run(text: str) -> Envelope:
        return get_service(ctx).search(text, limit=limit, source=source, offline=offline, collections=collections)

    if use_stdin:
        if query:
            raise click.UsageError("Positional <query> cannot be used with --stdin.")
        emit_all(ctx, (run(line) for line in read_stdin_lines()), output_format)
        return

    emit(ctx, run(require_argument(query, "query")), output_format)
