"""High-level operations behind every icns command.

Each public method of :class:`IconService` returns an
:class:`~icns.output.Envelope`; failures are reported structurally and never
raised to the caller.

Example:
    >>> from icns import Config, IconService, ResolveOptions
    >>> service = IconService(Config.load())
    >>> service.resolve("mdi:home", ResolveOptions()).to_dict()
"""

from __future__ import annotations

import logging
import os
import time
import webbrowser
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote

from icns.batch.executor import BatchItem, run_batch
from icns.batch.manifest import load_manifest
from icns.catalog.client import Catalog, CatalogClient
from icns.config import Config
from icns.exceptions import (
    AmbiguousError,
    BrowserError,
    FilesystemError,
    IcnsError,
    LocalUnavailableError,
    NotFoundError,
    OutputExistsError,
    RenderError,
    TransportError,
    UsageError,
)
from icns.index.store import SnapshotStore
from icns.index.sync import DEFAULT_SYNC_CONCURRENCY, sync_index
from icns.models import (
    Ambiguous,
    Exact,
    FuzzyMatch,
    ManifestItem,
    MatchMode,
    NotFound,
    RenderOptions,
    ResolutionOutcome,
    ResolveOptions,
    SourceMode,
    SourceUnavailable,
    TransportFailure,
    icon_prefix,
)
from icns.output import Envelope, failure, from_error, success
from icns.render.rasterizer import Rasterizer
from icns.render.svg import customize_svg
from icns.resolution.engine import ResolutionEngine, rank
from icns.resolution.selector import CandidateSelector, uses_local_only, validate_source_mode

logger = logging.getLogger(__name__)

PREVIEW_BASE = "https://icones.js.org"


def outcome_data(outcome: ResolutionOutcome) -> dict[str, Any]:
    """Payload for a successful outcome; raise the matching error otherwise."""
    match outcome:
        case Exact(id=icon_id):
            return {"icon": icon_id, "match": MatchMode.EXACT.value}
        case FuzzyMatch():
            return {
                "icon": outcome.id,
                "match": MatchMode.FUZZY.value,
                "score": round(outcome.score, 4),
                "candidatesConsidered": outcome.candidates_considered,
                "source": outcome.source,
            }
        case Ambiguous(top_candidates=candidates):
            raise AmbiguousError(
                "Fuzzy query matches several icons. Refine the query or pass --auto-select top1.",
                candidates=[candidate.to_dict() for candidate in candidates],
            )
        case NotFound(reason=reason):
            raise NotFoundError(reason)
        case SourceUnavailable(reason=reason):
            raise NotFoundError(reason, details={"source": "index"})
        case TransportFailure(error=error):
            raise error
        case _:
            raise TypeError(f"Unhandled resolution outcome: {outcome!r}")


def _item_error(error: Exception | None) -> dict[str, Any] | None:
    if error is None:
        return None
    if isinstance(error, IcnsError):
        return error.to_dict()
    return {"code": "ERROR", "message": str(error)}


class IconService:
    """Resolve, search, fetch and render icons; manage the local index."""

    def __init__(
        self,
        config: Config,
        client: Catalog | None = None,
        store: SnapshotStore | None = None,
        rasterizer: Rasterizer | None = None,
    ) -> None:
        self.config = config
        self.client = client if client is not None else CatalogClient(config)
        self.store = store if store is not None else SnapshotStore(config)
        self.rasterizer = rasterizer if rasterizer is not None else Rasterizer(config)
        self.selector = CandidateSelector(self.store, self.client)
        self.engine = ResolutionEngine(self.selector)

    # Resolution

    def _resolve_icon(self, query: str, options: ResolveOptions) -> dict[str, Any]:
        return outcome_data(self.engine.resolve(query, options))

    def resolve(self, query: str, options: ResolveOptions) -> Envelope:
        try:
            return success(self._resolve_icon(query, options))
        except IcnsError as e:
            return from_error(e)

    def search(
        self,
        query: str,
        limit: int = 20,
        source: SourceMode = SourceMode.AUTO,
        offline: bool = False,
        collections: tuple[str, ...] | None = None,
    ) -> Envelope:
        """Ranked icon ids for ``query`` from the snapshot or the catalog."""
        query = query.strip()
        if not query:
            return from_error(UsageError("query is required"))
        options = ResolveOptions(
            match=MatchMode.FUZZY, source=source, offline=offline, collections=collections, min_score=0.0
        )
        try:
            selection = self.selector.select(query, options, lambda ids: rank(query, ids, 0.0))
        except IcnsError as e:
            return from_error(e)

        items = [candidate.id for candidate in selection.ranked[: max(1, limit)]]
        return success(
            {
                "query": query,
                "source": selection.source,
                "total": len(selection.ranked),
                "limit": limit,
                "items": items,
            }
        )

    # Download and rendering

    def _check_output(self, output: Path, force: bool) -> None:
        if not force and output.exists():
            raise OutputExistsError(str(output))

    def _download_svg(self, icon_id: str) -> str:
        content = self.client.download_asset(icon_id)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RenderError("Downloaded SVG is not valid UTF-8", details={"icon": icon_id}) from e

    def fetch(self, query: str, output: Path, options: RenderOptions) -> Envelope:
        """Resolve ``query`` and save the raw SVG to ``output``."""
        try:
            if options.offline:
                raise UsageError("--offline is not supported for fetch (SVG download requires network).")
            resolved = self._resolve_icon(query, options)
            icon_id = resolved["icon"]
            self._check_output(output, options.force)
            svg = self.client.download_asset(icon_id)
            try:
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_bytes(svg)
            except OSError as e:
                raise FilesystemError(
                    "Failed to write SVG file", details={"path": str(output), "error": str(e)}
                ) from e
        except IcnsError as e:
            return from_error(e)

        logger.info("Saved %s to %s", icon_id, output)
        return success({"icon": icon_id, "output": str(output), "bytes": len(svg)})

    def _render_one(self, query: str, output: str, options: RenderOptions) -> dict[str, Any]:
        if options.offline and not options.dry_run:
            raise UsageError("--offline is not supported for render (SVG download requires network).")

        resolved = self._resolve_icon(query, options)
        icon_id = resolved["icon"]
        output_path = Path(output)
        plan: dict[str, Any] = {
            "icon": icon_id,
            "output": output,
            "size": options.size,
            "bg": options.bg,
            "fg": options.fg,
            "strokeWidth": options.stroke_width,
            "resolution": resolved,
        }

        if options.dry_run:
            return {**plan, "dryRun": True, "exists": output_path.exists(), "status": "planned"}

        self._check_output(output_path, options.force)
        svg = customize_svg(self._download_svg(icon_id), options.size, options.fg, options.stroke_width)
        written = self.rasterizer.render(svg, output_path, options.size, options.bg)
        logger.info("Rendered %s to %s (%d bytes)", icon_id, output, written)
        return {**plan, "bytes": written, "status": "rendered"}

    def render(self, query: str, output: str, options: RenderOptions) -> Envelope:
        """Resolve ``query`` and render it as a PNG at ``output``."""
        try:
            return success(self._render_one(query, output, options))
        except IcnsError as e:
            return from_error(e)

    def render_many(
        self,
        manifest_path: Path,
        defaults: RenderOptions,
        concurrency: int = 4,
        fail_fast: bool = False,
        on_item_done: Callable[[BatchItem[ManifestItem, dict[str, Any]]], None] | None = None,
        on_loaded: Callable[[int], None] | None = None,
    ) -> Envelope:
        """Render every manifest item; per-item fields override ``defaults``."""
        try:
            items = load_manifest(manifest_path)
        except IcnsError as e:
            return from_error(e)
        if not items:
            return failure("INVALID_USAGE", "Manifest contains no items.")
        if on_loaded:
            on_loaded(len(items))

        report = run_batch(
            items,
            concurrency,
            lambda item: self._render_one(item.query, item.output, item.effective_options(defaults)),
            fail_fast=fail_fast,
            on_item_done=on_item_done,
        )

        results = []
        for entry in report.items:
            result: dict[str, Any] = {
                "index": entry.index,
                "query": entry.input.query,
                "output": entry.input.output,
                "status": entry.status.value,
                "ok": entry.ok,
            }
            if entry.output is not None:
                result["data"] = entry.output
            if entry.error is not None:
                result["error"] = _item_error(entry.error)
            results.append(result)

        data = {"manifestPath": str(manifest_path.resolve()), **report.counts(), "items": results}
        if not report.ok:
            return failure("RENDER_ERROR", "One or more render operations failed.", data)
        return success(data)

    # Local index

    def index_sync(
        self,
        concurrency: int = DEFAULT_SYNC_CONCURRENCY,
        include_hidden: bool = False,
        on_collection_done: Callable[[BatchItem[str, list[str]]], None] | None = None,
        on_prefixes: Callable[[int], None] | None = None,
    ) -> Envelope:
        try:
            result = sync_index(
                self.client,
                self.store,
                concurrency=concurrency,
                include_hidden=include_hidden,
                on_collection_done=on_collection_done,
                on_prefixes=on_prefixes,
            )
        except IcnsError as e:
            return from_error(e)
        return success(result.to_dict())

    def index_status(self) -> Envelope:
        try:
            return success(self.store.status())
        except IcnsError as e:
            return from_error(e)

    def index_clear(self) -> Envelope:
        try:
            removed = self.store.clear()
        except IcnsError as e:
            return from_error(e)
        return success({"removed": removed, "path": str(self.store.path)})

    # Collections

    def collections_list(
        self, source: SourceMode = SourceMode.AUTO, offline: bool = False, limit: int = 0
    ) -> Envelope:
        """Collections with icon counts, from the snapshot or the catalog.

        ``limit <= 0`` lists everything.
        """
        try:
            validate_source_mode(source, offline)
            local_only = uses_local_only(ResolveOptions(source=source, offline=offline))
            if local_only or source is SourceMode.AUTO:
                snapshot = self.store.read()
                if snapshot is not None:
                    counts: dict[str, int] = {}
                    for icon_id in snapshot.icons:
                        prefix = icon_prefix(icon_id)
                        if prefix:
                            counts[prefix] = counts.get(prefix, 0) + 1
                    rows = [{"prefix": prefix, "total": counts[prefix]} for prefix in sorted(counts)]
                    return success(_collection_rows("index", rows, limit))
                if local_only:
                    raise LocalUnavailableError()

            metadata = self.client.collections_metadata()
            rows = [
                {
                    "prefix": prefix,
                    "total": int(entry.get("total") or 0),
                    "name": entry.get("name") or entry.get("title") or prefix,
                    "category": entry.get("category"),
                    "palette": bool(entry.get("palette")),
                }
                for prefix, entry in sorted(metadata.items())
            ]
            return success(_collection_rows("api", rows, limit))
        except IcnsError as e:
            return from_error(e)

    def collection_info(
        self,
        prefix: str,
        source: SourceMode = SourceMode.AUTO,
        offline: bool = False,
        icons_limit: int = 20,
    ) -> Envelope:
        normalized = prefix.strip().lower()
        if not normalized:
            return from_error(UsageError("collection prefix is required"))
        icons_limit = max(0, icons_limit)

        try:
            validate_source_mode(source, offline)
            local_only = uses_local_only(ResolveOptions(source=source, offline=offline))
            if local_only or source is SourceMode.AUTO:
                snapshot = self.store.read()
                if snapshot is not None:
                    icons = sorted(icon for icon in snapshot.icons if icon_prefix(icon) == normalized)
                    if icons:
                        return success(
                            {
                                "source": "index",
                                "prefix": normalized,
                                "total": len(icons),
                                "sampleIcons": icons[:icons_limit],
                                "indexPath": str(self.store.path),
                            }
                        )
                    if local_only:
                        raise NotFoundError(f"Collection not found in local index: {normalized}")
                elif local_only:
                    raise LocalUnavailableError()

            metadata = self.client.collections_metadata()
            meta = metadata.get(normalized)
            if meta is None:
                raise NotFoundError(f"Collection not found: {normalized}")
            icon_ids = sorted(self.client.list_collection_icon_names(normalized, include_hidden=False))
            return success(
                {
                    "source": "api",
                    "prefix": normalized,
                    "name": meta.get("name") or meta.get("title") or normalized,
                    "total": int(meta.get("total") or len(icon_ids)),
                    "category": meta.get("category"),
                    "palette": bool(meta.get("palette")),
                    "author": meta.get("author"),
                    "license": meta.get("license"),
                    "tags": meta.get("tags") or [],
                    "sampleIcons": icon_ids[:icons_limit],
                }
            )
        except TransportError as e:
            if e.status == 404:
                return from_error(NotFoundError(f"Collection not found: {normalized}"))
            return from_error(e)
        except IcnsError as e:
            return from_error(e)

    # Diagnostics

    def doctor(self, offline: bool = False) -> Envelope:
        """Check API reachability, cache directory writability and index state."""
        api: dict[str, Any] = {
            "ok": offline,
            "skipped": offline,
            "base": self.config.api_base,
            "timeoutMs": int(self.config.timeout * 1000),
            "latencyMs": None,
            "collections": None,
            "error": None,
        }
        cache_dir: dict[str, Any] = {
            "ok": False,
            "path": str(self.config.cache_dir),
            "writable": False,
            "error": None,
        }
        index: dict[str, Any] = {
            "ok": False,
            "exists": False,
            "path": str(self.store.path),
            "total": None,
            "updatedAt": None,
            "ageMs": None,
            "error": None,
        }

        if not offline:
            started = time.monotonic()
            try:
                collections = self.client.collections_metadata()
                api.update(
                    ok=True,
                    collections=len(collections),
                    latencyMs=int((time.monotonic() - started) * 1000),
                )
            except IcnsError as e:
                api["error"] = e.to_dict()

        try:
            self.config.cache_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
            probe = self.config.cache_dir / f".doctor-{stamp}-{os.getpid()}.tmp"
            probe.write_text("ok\n", encoding="utf-8")
            probe.unlink(missing_ok=True)
            cache_dir.update(ok=True, writable=True)
        except OSError as e:
            cache_dir["error"] = {"message": str(e)}

        try:
            index.update(self.store.status(), ok=True)
        except IcnsError as e:
            index["error"] = e.to_dict()

        summary = {
            "ok": api["ok"] and cache_dir["ok"] and index["ok"],
            "checks": {"api": api, "cacheDir": cache_dir, "index": index},
        }
        if summary["ok"]:
            return success(summary)
        code = "API_ERROR" if cache_dir["ok"] and index["ok"] else "FS_ERROR"
        return failure(code, "Doctor checks failed", summary)

    def preview(self, query: str, collection: str = "all", open_browser: bool = True) -> Envelope:
        """Build (and optionally open) the Icônes search page for ``query``."""
        query = query.strip()
        if not query:
            return from_error(UsageError("query is required"))
        url = f"{PREVIEW_BASE}/collection/{quote(collection.strip() or 'all')}?s={quote(query)}"

        if open_browser:
            try:
                opened = webbrowser.open(url)
            except webbrowser.Error as e:
                return from_error(BrowserError(f"Failed to open browser: {e}", details={"url": url}))
            if not opened:
                return from_error(BrowserError("No browser available to open preview", details={"url": url}))

        return success({"query": query, "url": url, "opened": open_browser})


def _collection_rows(source: str, rows: list[dict[str, Any]], limit: int) -> dict[str, Any]:
    total = len(rows)
    if limit > 0:
        rows = rows[:limit]
    return {"source": source, "total": total, "items": rows}
