"""Render, render-many and fetch commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from icns.cli.options import (
    check_source_mode,
    emit,
    emit_all,
    format_option,
    get_service,
    parse_render_line,
    read_stdin_lines,
    render_options,
    require_argument,
    resolve_options,
    stdin_option,
)
from icns.cli.progress import batch_progress, progress_enabled
from icns.models import RenderOptions
from icns.output import OutputFormat


@click.command()
@click.argument("query_or_icon", required=False)
@click.option("-o", "--output", help="Output PNG path")
@stdin_option
@render_options
@resolve_options
@format_option
@click.pass_context
def render(
    ctx: click.Context,
    query_or_icon: str | None,
    output: str | None,
    use_stdin: bool,
    output_format: OutputFormat,
    **options: Any,
) -> None:
    """Resolve an icon and render it as a PNG.

    With --stdin, each line is "<query-or-icon><TAB><output-path>".
    """
    parsed = RenderOptions(**options)
    check_source_mode(parsed.source, parsed.offline)

    if use_stdin:
        if query_or_icon:
            raise click.UsageError("Positional <query-or-icon> cannot be used with --stdin.")
        entries = [parse_render_line(line, i) for i, line in enumerate(read_stdin_lines())]
        service = get_service(ctx)
        emit_all(ctx, (service.render(query, path, parsed) for query, path in entries), output_format)
        return

    query = require_argument(query_or_icon, "query-or-icon")
    path = require_argument(output, "--output")
    emit(ctx, get_service(ctx).render(query, path, parsed), output_format)


@click.command("render-many")
@click.argument("manifest", type=click.Path(path_type=Path))
@render_options
@resolve_options
@click.option("--concurrency", type=click.IntRange(min=1), default=4, show_default=True, help="Parallel render workers")
@click.option("--fail-fast", is_flag=True, help="Stop processing on first failure")
@format_option
@click.pass_context
def render_many(
    ctx: click.Context,
    manifest: Path,
    concurrency: int,
    fail_fast: bool,
    output_format: OutputFormat,
    **options: Any,
) -> None:
    """Render many icons from a JSON, YAML or CSV manifest.

    Command-line options are defaults; manifest items override them.
    """
    defaults = RenderOptions(**options)
    check_source_mode(defaults.source, defaults.offline)
    service = get_service(ctx)

    with batch_progress("Rendering icons", progress_enabled(output_format)) as progress:
        result = service.render_many(
            manifest,
            defaults,
            concurrency=concurrency,
            fail_fast=fail_fast,
            on_item_done=progress.advance,
            on_loaded=progress.set_total,
        )
    emit(ctx, result, output_format)


@click.command()
@click.argument("query_or_icon")
@click.option("-o", "--output", type=click.Path(path_type=Path), required=True, help="Output SVG path")
@resolve_options
@click.option("--force", is_flag=True, help="Overwrite existing file")
@format_option
@click.pass_context
def fetch(
    ctx: click.Context,
    query_or_icon: str,
    output: Path,
    force: bool,
    output_format: OutputFormat,
    **options: Any,
) -> None:
    """Resolve an icon and download its raw SVG."""
    parsed = RenderOptions(force=force, **options)
    check_source_mode(parsed.source, parsed.offline)
    query = require_argument(query_or_icon, "query-or-icon")
    emit(ctx, get_service(ctx).fetch(query, output, parsed), output_format)
