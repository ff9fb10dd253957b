"""Local icon index: snapshot storage and synchronization."""

from icns.index.store import SnapshotStore
from icns.index.sync import SyncResult, sync_index

__all__ = ["SnapshotStore", "SyncResult", "sync_index"]
