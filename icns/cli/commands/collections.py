"""Collections command - inspect Iconify collections."""

from __future__ import annotations

import click

from icns.cli.options import check_source_mode, emit, format_option, get_service, source_options
from icns.models import SourceMode
from icns.output import OutputFormat


@click.group()
def collections() -> None:
    """Inspect Iconify collections."""
    pass


@collections.command("list")
@source_options
@click.option("--limit", type=int, default=0, show_default=True, help="Max collections (0 = all)")
@format_option
@click.pass_context
def list_collections(
    ctx: click.Context, source: SourceMode, offline: bool, limit: int, output_format: OutputFormat
) -> None:
    """List available collections and icon counts."""
    check_source_mode(source, offline)
    emit(ctx, get_service(ctx).collections_list(source=source, offline=offline, limit=limit), output_format)


@collections.command("info")
@click.argument("prefix")
@source_options
@click.option("--icons-limit", type=click.IntRange(min=1), default=20, show_default=True, help="Sample icon limit")
@format_option
@click.pass_context
def collection_info(
    ctx: click.Context,
    prefix: str,
    source: SourceMode,
    offline: bool,
    icons_limit: int,
    output_format: OutputFormat,
) -> None:
    """Show details for one collection."""
    check_source_mode(source, offline)
    result = get_service(ctx).collection_info(prefix, source=source, offline=offline, icons_limit=icons_limit)
    emit(ctx, result, output_format)
