"""icns: Resolve, search and render Iconify icons.

This library provides:
- Exact and fuzzy resolution of queries to canonical ``prefix:name`` ids
- A local snapshot of the Iconify catalog for offline resolution
- SVG download and PNG rendering, one at a time or from a manifest

Example:
    >>> from icns import Config, IconService, ResolveOptions
    >>> service = IconService(Config.load())
    >>> service.resolve("mdi:home", ResolveOptions()).data
    {'icon': 'mdi:home', 'match': 'exact'}
"""

__version__ = "0.1.0"

from icns.api import IconService  # noqa: E402
from icns.config import Config  # noqa: E402
from icns.exceptions import (  # noqa: E402
    AmbiguousError,
    BrowserError,
    FilesystemError,
    IcnsError,
    NotFoundError,
    RenderError,
    TransportError,
    UsageError,
)
from icns.models import MatchMode, RenderOptions, ResolveOptions, SourceMode  # noqa: E402
from icns.output import Envelope  # noqa: E402

__all__ = [
    # Main API
    "IconService",
    "Envelope",
    "Config",
    # Options
    "ResolveOptions",
    "RenderOptions",
    "MatchMode",
    "SourceMode",
    # Exceptions
    "IcnsError",
    "UsageError",
    "NotFoundError",
    "AmbiguousError",
    "TransportError",
    "RenderError",
    "FilesystemError",
    "BrowserError",
    # Metadata
    "__version__",
]
