"""Doctor and preview commands."""

from __future__ import annotations

import click

from icns.cli.options import emit, format_option, get_service
from icns.output import OutputFormat


@click.command()
@click.option("--offline", is_flag=True, help="Skip API reachability checks")
@format_option
@click.pass_context
def doctor(ctx: click.Context, offline: bool, output_format: OutputFormat) -> None:
    """Run health checks for the API, cache directory and local index."""
    emit(ctx, get_service(ctx).doctor(offline=offline), output_format)


@click.command()
@click.argument("query")
@click.option("--collection", default="all", show_default=True, help="Icônes collection page")
@click.option("--open/--no-open", "open_browser", default=True, help="Open the page in a browser")
@format_option
@click.pass_context
def preview(ctx: click.Context, query: str, collection: str, open_browser: bool, output_format: OutputFormat) -> None:
    """Open the Icônes preview page for a query."""
    emit(ctx, get_service(ctx).preview(query, collection=collection, open_browser=open_browser), output_format)
