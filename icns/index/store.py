"""Local snapshot of every known icon identifier.

The snapshot is a single JSON file under the cache directory. It is written
only by index synchronization and always replaced wholesale: the new payload
goes to a temporary file in the same directory which is then moved over the
old one with :func:`os.replace`, so concurrent readers see either the old or
the new snapshot.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from icns.config import Config
from icns.exceptions import FilesystemError
from icns.models import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads, replaces and clears the local icon index."""

    _format_version = 1

    def __init__(self, config: Config) -> None:
        self.path: Path = config.index_path

    def read(self) -> Snapshot | None:
        """Load the snapshot, or ``None`` when it has never been synchronized.

        Raises:
            FilesystemError: If the file exists but cannot be read or parsed.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FilesystemError(
                f"Cannot read local index: {self.path}", details={"path": str(self.path), "error": str(e)}
            ) from e

        try:
            payload = json.loads(content)
            icons = frozenset(payload["icons"])
            updated_at = datetime.fromisoformat(payload["updatedAt"].replace("Z", "+00:00"))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise FilesystemError(
                f"Local index is corrupt: {self.path}", details={"path": str(self.path), "error": str(e)}
            ) from e

        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return Snapshot(updated_at=updated_at, total=len(icons), icons=icons)

    def replace(self, icons: Iterable[str]) -> Snapshot:
        """Atomically swap in a new snapshot holding ``icons``."""
        unique = sorted(set(icons))
        updated_at = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "version": self._format_version,
            "updatedAt": updated_at.isoformat().replace("+00:00", "Z"),
            "total": len(unique),
            "icons": unique,
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".index-", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                    f.write("\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise FilesystemError(
                f"Cannot write local index: {self.path}", details={"path": str(self.path), "error": str(e)}
            ) from e

        logger.info("Wrote local index with %d icons to %s", len(unique), self.path)
        return Snapshot(updated_at=updated_at, total=len(unique), icons=frozenset(unique))

    def clear(self) -> bool:
        """Delete the snapshot. Returns ``False`` if there was none."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FilesystemError(
                f"Cannot remove local index: {self.path}", details={"path": str(self.path), "error": str(e)}
            ) from e
        logger.info("Removed local index %s", self.path)
        return True

    def status(self) -> dict[str, Any]:
        snapshot = self.read()
        if snapshot is None:
            return {"exists": False, "path": str(self.path), "total": None, "updatedAt": None, "ageMs": None}
        age = datetime.now(timezone.utc) - snapshot.updated_at
        return {
            "exists": True,
            "path": str(self.path),
            "total": snapshot.total,
            "updatedAt": snapshot.updated_at.isoformat().replace("+00:00", "Z"),
            "ageMs": max(0, int(age.total_seconds() * 1000)),
        }
