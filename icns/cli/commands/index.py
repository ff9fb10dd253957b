"""Index command - manage the local icon snapshot."""

from __future__ import annotations

import click

from icns.cli.options import emit, format_option, get_service
from icns.cli.progress import batch_progress, progress_enabled
from icns.index.sync import DEFAULT_SYNC_CONCURRENCY
from icns.output import OutputFormat


@click.group()
def index() -> None:
    """Manage the local icon index."""
    pass


@index.command("sync")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_SYNC_CONCURRENCY,
    show_default=True,
    help="Parallel collection fetches",
)
@click.option("--include-hidden", is_flag=True, help="Include hidden icons and aliases")
@format_option
@click.pass_context
def sync(ctx: click.Context, concurrency: int, include_hidden: bool, output_format: OutputFormat) -> None:
    """Download every collection and replace the local index."""
    service = get_service(ctx)
    with batch_progress("Syncing collections", progress_enabled(output_format)) as progress:
        result = service.index_sync(
            concurrency=concurrency,
            include_hidden=include_hidden,
            on_collection_done=progress.advance,
            on_prefixes=progress.set_total,
        )
    emit(ctx, result, output_format)


@index.command("status")
@format_option
@click.pass_context
def status(ctx: click.Context, output_format: OutputFormat) -> None:
    """Show local index status."""
    emit(ctx, get_service(ctx).index_status(), output_format)


@index.command("clear")
@format_option
@click.pass_context
def clear(ctx: click.Context, output_format: OutputFormat) -> None:
    """Delete the local index."""
    emit(ctx, get_service(ctx).index_clear(), output_format)
