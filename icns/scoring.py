"""Query-to-identifier similarity.

The score is a coarse ladder: exact (1.0), prefix (0.92), substring (0.82),
then a continuous bigram Jaccard tail on the icon name. Exact, prefix and
substring hits always outrank the bigram tail.
"""

from __future__ import annotations

import re

from icns.models import SEPARATOR

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.92
SUBSTRING_SCORE = 0.82

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(value: str) -> str:
    """Lowercase and strip everything but ASCII letters and digits."""
    return _NON_ALNUM.sub("", value.lower())


def bigrams(value: str) -> set[str]:
    """Set of adjacent character pairs.

    A one-character string yields itself; an empty string yields an empty set.
    """
    if len(value) < 2:
        return {value} if value else set()
    return {value[i : i + 2] for i in range(len(value) - 1)}


def jaccard(left: set[str], right: set[str]) -> float:
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def score(query: str, candidate_id: str) -> float:
    """Similarity of ``query`` to ``candidate_id`` in ``[0, 1]``."""
    normalized_query = normalize(query)
    if not normalized_query:
        return 0.0

    _, sep, name = candidate_id.partition(SEPARATOR)
    normalized_id = normalize(candidate_id)
    normalized_name = normalize(name if sep else candidate_id)

    if normalized_query in (normalized_id, normalized_name):
        return EXACT_SCORE
    if normalized_id.startswith(normalized_query) or normalized_name.startswith(normalized_query):
        return PREFIX_SCORE
    if normalized_query in normalized_id or normalized_query in normalized_name:
        return SUBSTRING_SCORE
    return jaccard(bigrams(normalized_query), bigrams(normalized_name))
