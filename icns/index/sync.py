"""Full-catalog synchronization into the local snapshot."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from icns.batch.executor import BatchItem, run_batch
from icns.catalog.client import Catalog
from icns.exceptions import TransportError
from icns.index.store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_SYNC_CONCURRENCY = 12


@dataclass(frozen=True)
class SyncResult:
    collections: int
    total: int
    updated_at: str
    path: str
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "collections": self.collections,
            "total": self.total,
            "updatedAt": self.updated_at,
            "path": self.path,
            "durationMs": self.duration_ms,
        }


def client_label(client: Catalog) -> str:
    return getattr(client, "api_base", type(client).__name__)


def sync_index(
    client: Catalog,
    store: SnapshotStore,
    concurrency: int = DEFAULT_SYNC_CONCURRENCY,
    include_hidden: bool = False,
    on_collection_done: Callable[[BatchItem[str, list[str]]], None] | None = None,
    on_prefixes: Callable[[int], None] | None = None,
) -> SyncResult:
    """Rebuild the snapshot from every collection of the remote catalog.

    One batch unit runs per collection prefix. The snapshot is replaced only
    when every unit succeeded; otherwise the previous snapshot is kept.

    Raises:
        TransportError: If listing collections or any collection fetch fails.
    """
    started = time.monotonic()
    prefixes = client.list_collection_prefixes()
    logger.info("Synchronizing %d collections", len(prefixes))
    if on_prefixes:
        on_prefixes(len(prefixes))

    report = run_batch(
        prefixes,
        concurrency,
        lambda prefix: client.list_collection_icon_names(prefix, include_hidden),
        fail_fast=False,
        on_item_done=on_collection_done,
    )

    failures = [item for item in report.items if not item.ok]
    if failures:
        first = failures[0].error
        if isinstance(first, TransportError):
            error = TransportError(first.url, status=first.status, body=first.body, reason=first.reason)
        else:
            error = TransportError(client_label(client), reason=str(first))
        error.message = f"Index sync failed for {len(failures)} of {report.total} collection(s)"
        error.details = {
            **(error.details or {}),
            "failedCollections": [item.input for item in failures],
            "failed": report.failed,
            "total": report.total,
        }
        logger.warning("%s; keeping previous index", error.message)
        raise error from first

    icons: list[str] = []
    for item in report.items:
        icons.extend(item.output or [])

    snapshot = store.replace(icons)
    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info("Synchronized %d icons from %d collections", snapshot.total, len(prefixes))
    return SyncResult(
        collections=len(prefixes),
        total=snapshot.total,
        updated_at=snapshot.updated_at.isoformat().replace("+00:00", "Z"),
        path=str(store.path),
        duration_ms=duration_ms,
    )
