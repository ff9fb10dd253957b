"""Resolution of queries and identifiers into a single icon decision."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from icns.exceptions import LocalUnavailableError, TransportError, UsageError
from icns.models import (
    Ambiguous,
    AutoSelect,
    Candidate,
    Exact,
    FuzzyMatch,
    MatchMode,
    NotFound,
    ResolutionOutcome,
    ResolveOptions,
    SourceUnavailable,
    TransportFailure,
    icon_prefix,
    looks_like_icon_id,
    parse_icon_id,
)
from icns.resolution.selector import CandidateSelector, filter_collections
from icns.scoring import EXACT_SCORE, score

logger = logging.getLogger(__name__)

PREFERRED_BOOST = 0.03
AMBIGUOUS_HINT_SIZE = 10


def sort_key(candidate: Candidate) -> tuple[float, bool, str]:
    """Score descending, preferred first, then identifier ascending."""
    return (-candidate.score, not candidate.preferred, candidate.id)


def rank(
    query: str,
    icon_ids: Iterable[str],
    min_score: float,
    prefer_prefixes: Iterable[str] | None = None,
) -> list[Candidate]:
    """Score, boost, filter and totally order ``icon_ids`` for ``query``.

    Preferred prefixes add ``PREFERRED_BOOST`` to scores below 1.0, capped
    at 1.0. Zero scores never survive, whatever ``min_score`` is.
    """
    preferred_set = {prefix.lower() for prefix in prefer_prefixes or ()}
    ranked: list[Candidate] = []
    for icon_id in icon_ids:
        value = score(query, icon_id)
        preferred = icon_prefix(icon_id) in preferred_set
        if preferred and value < EXACT_SCORE:
            value = min(EXACT_SCORE, value + PREFERRED_BOOST)
        if value > 0 and value >= min_score:
            ranked.append(Candidate(id=icon_id, score=value, preferred=preferred))
    ranked.sort(key=sort_key)
    return ranked


class ResolutionEngine:
    """Turns a query into exactly one :data:`~icns.models.ResolutionOutcome`.

    The engine never retries; transport failures and a missing local index
    are reported as outcomes rather than raised. Malformed input raises
    :class:`~icns.exceptions.UsageError`.
    """

    def __init__(self, selector: CandidateSelector) -> None:
        self.selector = selector

    def resolve(self, query: str, options: ResolveOptions) -> ResolutionOutcome:
        query = query.strip()
        if not query:
            raise UsageError("query-or-icon is required")

        try:
            if options.match is MatchMode.EXACT:
                return self._resolve_exact(query, options)
            return self._resolve_fuzzy(query, options)
        except LocalUnavailableError as e:
            return SourceUnavailable(reason=e.message)
        except TransportError as e:
            return TransportFailure(error=e)

    def _resolve_exact(self, query: str, options: ResolveOptions) -> ResolutionOutcome:
        if not looks_like_icon_id(query):
            raise UsageError(
                "Exact match requires a full icon id. Provide prefix:name or use --match fuzzy.",
                details={"input": query},
            )
        icon_id = str(parse_icon_id(query))

        if not filter_collections([icon_id], options.collections):
            return NotFound(reason=f"{icon_id} is outside the allowed collections")

        found, source = self.selector.lookup(icon_id, options)
        if found is None:
            logger.debug("Exact lookup of %s missed (%s)", icon_id, source)
            return NotFound(reason=f"Icon not found: {icon_id}")
        return Exact(id=found)

    def _resolve_fuzzy(self, query: str, options: ResolveOptions) -> ResolutionOutcome:
        selection = self.selector.select(
            query,
            options,
            lambda icon_ids: rank(query, icon_ids, options.min_score, options.prefer_prefixes),
        )
        ranked = selection.ranked

        if not ranked:
            return NotFound(reason=f"No icon matches {query!r} with score >= {options.min_score}")

        if len(ranked) == 1 or options.auto_select is AutoSelect.TOP1:
            top = ranked[0]
            return FuzzyMatch(
                id=top.id,
                score=top.score,
                candidates_considered=selection.considered,
                source=selection.source,
            )

        return Ambiguous(top_candidates=tuple(ranked[:AMBIGUOUS_HINT_SIZE]))
