"""Candidate source selection and the local-to-remote fallback protocol.

Source modes:

``index`` (or ``auto`` with ``offline``)
    Local snapshot only. A missing snapshot raises
    :class:`~icns.exceptions.LocalUnavailableError`; the network is never
    consulted.
``api``
    Remote catalog only. Client errors propagate as
    :class:`~icns.exceptions.TransportError`; the snapshot is never read.
``auto`` (online)
    Snapshot first when it exists. The remote catalog is queried only when
    the local candidates rank to zero survivors, never to augment a partial
    local result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from icns.catalog.client import MAX_SEARCH_LIMIT, Catalog
from icns.exceptions import LocalUnavailableError, UsageError
from icns.index.store import SnapshotStore
from icns.models import Candidate, ResolveOptions, Snapshot, SourceMode, icon_prefix

logger = logging.getLogger(__name__)

LOCAL = "local"
REMOTE = "remote"

Ranker = Callable[[list[str]], list[Candidate]]


@dataclass(frozen=True)
class Selection:
    """Ranked survivors from one source."""

    ranked: list[Candidate]
    considered: int
    source: str


def filter_collections(icon_ids: Iterable[str], collections: Iterable[str] | None) -> list[str]:
    """Keep ids whose prefix is in ``collections`` (case-insensitive).

    ``None`` means no restriction.
    """
    if collections is None:
        return list(icon_ids)
    allowed = {prefix.lower() for prefix in collections}
    return [icon_id for icon_id in icon_ids if icon_prefix(icon_id) in allowed]


def validate_source_mode(source: SourceMode, offline: bool) -> None:
    if offline and source is SourceMode.API:
        raise UsageError("--offline cannot be used with --source api.")


def uses_local_only(options: ResolveOptions) -> bool:
    return options.source is SourceMode.INDEX or (options.source is SourceMode.AUTO and options.offline)


class CandidateSelector:
    """Chooses where candidates come from for one resolution call."""

    def __init__(self, store: SnapshotStore, client: Catalog, remote_limit: int = MAX_SEARCH_LIMIT) -> None:
        self.store = store
        self.client = client
        self.remote_limit = remote_limit

    def _require_snapshot(self) -> Snapshot:
        snapshot = self.store.read()
        if snapshot is None:
            raise LocalUnavailableError()
        return snapshot

    def _local(self, snapshot: Snapshot, options: ResolveOptions, rank: Ranker) -> Selection:
        icon_ids = filter_collections(snapshot.icons, options.collections)
        return Selection(ranked=rank(icon_ids), considered=len(icon_ids), source=LOCAL)

    def _remote(self, query: str, options: ResolveOptions, rank: Ranker) -> Selection:
        icon_ids = filter_collections(self.client.search(query, self.remote_limit), options.collections)
        return Selection(ranked=rank(icon_ids), considered=len(icon_ids), source=REMOTE)

    def select(self, query: str, options: ResolveOptions, rank: Ranker) -> Selection:
        """Rank candidates for ``query`` from the source ``options`` dictate.

        Raises:
            UsageError: ``offline`` combined with the ``api`` source.
            LocalUnavailableError: Local snapshot required but missing.
            TransportError: The remote catalog failed.
        """
        validate_source_mode(options.source, options.offline)

        if uses_local_only(options):
            return self._local(self._require_snapshot(), options, rank)

        if options.source is SourceMode.API:
            return self._remote(query, options, rank)

        snapshot = self.store.read()
        if snapshot is not None:
            selection = self._local(snapshot, options, rank)
            if selection.ranked:
                return selection
            logger.info("No local match for %r, falling back to remote catalog", query)
        else:
            logger.debug("No local index, querying remote catalog for %r", query)
        return self._remote(query, options, rank)

    def lookup(self, icon_id: str, options: ResolveOptions) -> tuple[str | None, str]:
        """Check whether ``icon_id`` exists.

        Returns:
            ``(matched_id, source)`` where ``matched_id`` is ``None`` when
            the icon does not exist. Local hits return the stored spelling.
        """
        validate_source_mode(options.source, options.offline)
        key = icon_id.lower()

        if uses_local_only(options):
            return self._require_snapshot().find(key), LOCAL

        if options.source is SourceMode.API:
            return (icon_id if self.client.exists(icon_id) else None), REMOTE

        snapshot = self.store.read()
        if snapshot is not None:
            found = snapshot.find(key)
            if found is not None:
                return found, LOCAL
            logger.info("%s not in local index, probing remote catalog", icon_id)
        return (icon_id if self.client.exists(icon_id) else None), REMOTE
