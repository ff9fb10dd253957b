"""Core data types: identifiers, candidates, snapshots and resolution outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Union

from icns.exceptions import TransportError, UsageError

SEPARATOR = ":"
DEFAULT_MIN_SCORE = 0.45
DEFAULT_SIZE = 24
DEFAULT_BACKGROUND = "transparent"


class MatchMode(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"


class SourceMode(str, Enum):
    """Where candidates come from.

    ``INDEX`` is local-only, ``API`` is remote-only, ``AUTO`` prefers the
    local snapshot and falls back to the remote catalog on empty results.
    """

    AUTO = "auto"
    INDEX = "index"
    API = "api"


class AutoSelect(str, Enum):
    TOP1 = "top1"


@dataclass(frozen=True)
class IconId:
    """A ``prefix:name`` identifier.

    The display form is kept as given; comparisons use :attr:`key`.
    """

    prefix: str
    name: str

    def __str__(self) -> str:
        return f"{self.prefix}{SEPARATOR}{self.name}"

    @property
    def key(self) -> str:
        return str(self).lower()


def looks_like_icon_id(text: str) -> bool:
    return SEPARATOR in text


def parse_icon_id(text: str) -> IconId:
    """Split ``prefix:name``; both parts must be non-empty.

    Raises:
        UsageError: If the text is not a full identifier.
    """
    prefix, sep, name = text.strip().partition(SEPARATOR)
    if not sep or not prefix or not name:
        raise UsageError(
            f"Invalid icon id: {text!r}. Expected prefix:name.",
            details={"input": text},
        )
    return IconId(prefix, name)


def icon_prefix(icon_id: str) -> str:
    """Lowercase prefix of ``icon_id``, empty when there is no prefix."""
    index = icon_id.find(SEPARATOR)
    if index <= 0:
        return ""
    return icon_id[:index].lower()


@dataclass(frozen=True)
class Candidate:
    id: str
    score: float
    preferred: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"icon": self.id, "score": round(self.score, 4), "preferred": self.preferred}


@dataclass(frozen=True)
class Snapshot:
    updated_at: datetime
    total: int
    icons: frozenset[str]
    by_key: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Lowercased id -> stored spelling; an already-lowercase id wins.
        by_key: dict[str, str] = {}
        for icon_id in sorted(self.icons):
            by_key.setdefault(icon_id.lower(), icon_id)
        for icon_id in self.icons:
            if icon_id == icon_id.lower():
                by_key[icon_id] = icon_id
        object.__setattr__(self, "by_key", by_key)

    def find(self, icon_id: str) -> str | None:
        """Stored spelling of ``icon_id``, matched case-insensitively."""
        return self.by_key.get(icon_id.lower())


# Resolution outcomes. Exactly one is produced per resolve() call.


@dataclass(frozen=True)
class Exact:
    id: str


@dataclass(frozen=True)
class FuzzyMatch:
    id: str
    score: float
    candidates_considered: int
    source: str


@dataclass(frozen=True)
class Ambiguous:
    top_candidates: tuple[Candidate, ...]


@dataclass(frozen=True)
class NotFound:
    reason: str = "No matching icon found"


@dataclass(frozen=True)
class SourceUnavailable:
    reason: str


@dataclass(frozen=True)
class TransportFailure:
    error: TransportError


ResolutionOutcome = Union[Exact, FuzzyMatch, Ambiguous, NotFound, SourceUnavailable, TransportFailure]


@dataclass(frozen=True)
class ResolveOptions:
    match: MatchMode = MatchMode.EXACT
    source: SourceMode = SourceMode.AUTO
    offline: bool = False
    collections: tuple[str, ...] | None = None
    prefer_prefixes: tuple[str, ...] | None = None
    auto_select: AutoSelect | None = None
    min_score: float = DEFAULT_MIN_SCORE


@dataclass(frozen=True)
class RenderOptions(ResolveOptions):
    size: int = DEFAULT_SIZE
    bg: str = DEFAULT_BACKGROUND
    fg: str | None = None
    stroke_width: float | None = None
    force: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class ManifestItem:
    """One render request from a manifest.

    Only ``query`` and ``output`` are required. Every other field stays
    ``None`` until :meth:`effective_options` merges it over batch defaults.
    """

    query: str
    output: str
    size: int | None = None
    bg: str | None = None
    fg: str | None = None
    stroke_width: float | None = None
    match: MatchMode | None = None
    source: SourceMode | None = None
    offline: bool | None = None
    collections: tuple[str, ...] | None = None
    prefer_prefixes: tuple[str, ...] | None = None
    auto_select: AutoSelect | None = None
    min_score: float | None = None
    force: bool | None = None
    dry_run: bool | None = None

    def effective_options(self, defaults: RenderOptions) -> RenderOptions:
        overrides = {
            name: getattr(self, name)
            for name in _ITEM_OVERRIDES
            if getattr(self, name) is not None
        }
        return replace(defaults, **overrides)


_ITEM_OVERRIDES = tuple(
    f.name for f in fields(ManifestItem) if f.name not in ("query", "output")
)
