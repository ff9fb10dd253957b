"""Pytest configuration and shared fixtures for icns tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from icns.api import IconService
from icns.config import Config
from icns.exceptions import TransportError
from icns.index.store import SnapshotStore

SIMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="1em" height="1em" viewBox="0 0 24 24">'
    '<path fill="currentColor" d="M10 20v-6h4v6h5v-8h3L12 3L2 12h3v8z"/></svg>'
)

DEFAULT_COLLECTIONS = {
    "mdi": ["home", "home-outline", "account", "github"],
    "tabler": ["home", "user"],
    "noto": ["bacon"],
}


class FakeCatalog:
    """In-memory stand-in for the Iconify API client."""

    api_base = "https://fake.iconify.test"

    def __init__(
        self,
        collections: dict[str, list[str]] | None = None,
        search_results: dict[str, list[str]] | None = None,
    ) -> None:
        self.collections = dict(DEFAULT_COLLECTIONS if collections is None else collections)
        self.search_results = search_results or {}
        self.assets: dict[str, str | bytes] = {}
        self.fail_prefixes: set[str] = set()
        self.error: TransportError | None = None
        self.calls: list[tuple[str, object]] = []

    def _check(self, method: str, arg: object) -> None:
        self.calls.append((method, arg))
        if self.error is not None:
            raise self.error

    def all_ids(self) -> list[str]:
        return [f"{prefix}:{name}" for prefix, names in self.collections.items() for name in names]

    def search(self, query: str, limit: int) -> list[str]:
        self._check("search", query)
        return list(self.search_results.get(query, []))[:limit]

    def exists(self, icon_id: str) -> bool:
        self._check("exists", icon_id)
        return icon_id.lower() in {i.lower() for i in self.all_ids()}

    def collections_metadata(self) -> dict[str, dict]:
        self._check("collections_metadata", None)
        return {
            prefix: {"name": prefix.upper(), "total": len(names), "category": "General"}
            for prefix, names in self.collections.items()
        }

    def list_collection_prefixes(self) -> list[str]:
        self._check("list_collection_prefixes", None)
        return list(self.collections)

    def list_collection_icon_names(self, prefix: str, include_hidden: bool) -> list[str]:
        self._check("list_collection_icon_names", prefix)
        if prefix in self.fail_prefixes:
            raise TransportError(f"{self.api_base}/collection?prefix={prefix}", status=503, body="busy")
        return [f"{prefix}:{name}" for name in self.collections[prefix]]

    def download_asset(self, icon_id: str) -> bytes:
        self._check("download_asset", icon_id)
        asset = self.assets.get(icon_id, SIMPLE_SVG)
        return asset if isinstance(asset, bytes) else asset.encode("utf-8")

    def remote_calls(self) -> list[tuple[str, object]]:
        return list(self.calls)


class FakeRasterizer:
    """Records render requests and writes a small placeholder file."""

    def __init__(self) -> None:
        self.renders: list[dict] = []

    def render(self, svg_text: str, output: Path, size: int, bg: str = "transparent") -> int:
        self.renders.append({"svg": svg_text, "output": output, "size": size, "bg": bg})
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"\x89PNG fake")
        return output.stat().st_size


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config isolated to a temporary cache directory."""
    return Config(api_base="https://fake.iconify.test", cache_dir=tmp_path / "cache")


@pytest.fixture
def store(config: Config) -> SnapshotStore:
    return SnapshotStore(config)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def synced_store(store: SnapshotStore, catalog: FakeCatalog) -> SnapshotStore:
    """Store holding a snapshot of every icon of the default fake catalog."""
    store.replace(catalog.all_ids())
    catalog.calls.clear()
    return store


@pytest.fixture
def rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture
def service(config: Config, catalog: FakeCatalog, store: SnapshotStore, rasterizer: FakeRasterizer) -> IconService:
    return IconService(config, client=catalog, store=store, rasterizer=rasterizer)


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner instance for testing CLI commands."""
    return CliRunner()


def envelopes(result: Result) -> list[dict]:
    """JSON envelopes printed on stdout, in order."""
    return [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]


def envelope(result: Result) -> dict:
    return envelopes(result)[-1]
