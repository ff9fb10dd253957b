"""CLI commands for icns."""

from icns.cli.commands.collections import collections
from icns.cli.commands.doctor import doctor, preview
from icns.cli.commands.index import index
from icns.cli.commands.render import fetch, render, render_many
from icns.cli.commands.resolve import resolve, search

__all__ = ["resolve", "search", "render", "render_many", "fetch", "preview", "collections", "index", "doctor"]
