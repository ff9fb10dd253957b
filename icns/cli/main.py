"""icns command line entry point.

Results are printed to stdout as a JSON envelope (or plain text with
``--format plain``); logs and progress go to stderr. The exit status is
derived from the envelope error code.
"""

from __future__ import annotations

from pathlib import Path

import click

from icns import __version__
from icns.cli.commands import collections, doctor, fetch, index, preview, render, render_many, resolve, search
from icns.log import LOG_LEVELS, configure_logging


@click.group()
@click.version_option(__version__, prog_name="icns")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="YAML configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for stderr diagnostics",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str) -> None:
    """Resolve, search and render Iconify icons."""
    configure_logging(log_level)
    obj = ctx.ensure_object(dict)
    obj.setdefault("config_path", config_path)
    obj["log_level"] = log_level.upper()


for command in (resolve, render, render_many, fetch, search, preview, collections, doctor, index):
    cli.add_command(command)


def main() -> None:
    cli(obj={})
