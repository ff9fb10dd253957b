"""Iconify catalog API client.

Thin wrapper over the public Iconify HTTP API. Every failure, whether an
HTTP error status, a network error, a timeout or an undecodable payload, is
raised as :class:`~icns.exceptions.TransportError` carrying the URL, status
and response body.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Protocol
from urllib.parse import quote

from icns.config import Config
from icns.exceptions import TransportError
from icns.models import parse_icon_id

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 200
MIN_API_SEARCH_LIMIT = 32
MAX_ERROR_BODY = 2000


class Catalog(Protocol):
    """Operations the resolver and synchronizer need from the catalog."""

    def search(self, query: str, limit: int) -> list[str]: ...

    def exists(self, icon_id: str) -> bool: ...

    def collections_metadata(self) -> dict[str, dict[str, Any]]: ...

    def list_collection_prefixes(self) -> list[str]: ...

    def list_collection_icon_names(self, prefix: str, include_hidden: bool) -> list[str]: ...

    def download_asset(self, icon_id: str) -> bytes: ...


class CatalogClient:
    """HTTP client for the Iconify API."""

    def __init__(self, config: Config) -> None:
        self.api_base = config.api_base
        self.timeout = config.timeout
        self.user_agent = config.user_agent

    # Public API

    def search(self, query: str, limit: int) -> list[str]:
        """Search icon ids matching ``query``.

        The requested limit is clamped to 1..200; the API is always asked
        for at least 32 results and the answer is sliced back.
        """
        requested = max(1, min(MAX_SEARCH_LIMIT, int(limit)))
        api_limit = max(MIN_API_SEARCH_LIMIT, requested)
        data = self._get_json(f"/search?query={quote(query.strip())}&limit={api_limit}")
        icons = (data.get("icons") or []) if isinstance(data, dict) else []
        return [str(icon) for icon in icons][:requested]

    def exists(self, icon_id: str) -> bool:
        url = self._url(self._asset_path(icon_id))
        try:
            with self._open(url, method="HEAD"):
                return True
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return False
            raise self._http_error(url, e) from e
        except (urllib.error.URLError, OSError) as e:
            raise self._network_error(url, e) from e

    def download_asset(self, icon_id: str) -> bytes:
        return self._get(self._asset_path(icon_id))

    def collections_metadata(self) -> dict[str, dict[str, Any]]:
        data = self._get_json("/collections")
        if not isinstance(data, dict):
            raise TransportError(self._url("/collections"), reason="unexpected collections payload")
        return data

    def list_collection_prefixes(self) -> list[str]:
        return list(self.collections_metadata().keys())

    def collection(self, prefix: str) -> dict[str, Any]:
        path = f"/collection?prefix={quote(prefix)}"
        data = self._get_json(path)
        if not isinstance(data, dict):
            raise TransportError(self._url(path), reason="unexpected collection payload")
        return data

    def list_collection_icon_names(self, prefix: str, include_hidden: bool) -> list[str]:
        """All icon ids of one collection.

        Uncategorized and categorized names are always included; hidden
        names and aliases only when ``include_hidden`` is set.
        """
        payload = self.collection(prefix)
        names: dict[str, None] = {}

        for name in payload.get("uncategorized") or []:
            names[name] = None
        for values in (payload.get("categories") or {}).values():
            for name in values:
                names[name] = None
        if include_hidden:
            for name in payload.get("hidden") or []:
                names[name] = None
            for name in payload.get("aliases") or {}:
                names[name] = None

        return [f"{prefix}:{name}" for name in names]

    # HTTP helpers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.api_base}{path}"

    @staticmethod
    def _asset_path(icon_id: str) -> str:
        parsed = parse_icon_id(icon_id)
        return f"/{quote(parsed.prefix)}/{quote(parsed.name)}.svg"

    def _open(self, url: str, method: str = "GET"):
        request = urllib.request.Request(
            url,
            method=method,
            headers={"User-Agent": self.user_agent},
        )
        logger.debug("%s %s", method, url)
        return urllib.request.urlopen(request, timeout=self.timeout)

    def _get(self, path: str) -> bytes:
        url = self._url(path)
        try:
            with self._open(url) as response:
                return response.read()
        except urllib.error.HTTPError as e:
            raise self._http_error(url, e) from e
        except (urllib.error.URLError, OSError) as e:
            raise self._network_error(url, e) from e

    def _get_json(self, path: str) -> Any:
        content = self._get(path)
        try:
            return json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise TransportError(self._url(path), reason=f"invalid JSON response: {e}") from e

    @staticmethod
    def _http_error(url: str, error: urllib.error.HTTPError) -> TransportError:
        try:
            body = error.read().decode("utf-8", errors="replace")[:MAX_ERROR_BODY]
        except OSError:
            body = ""
        logger.warning("HTTP %s for %s", error.code, url)
        return TransportError(url, status=error.code, body=body)

    @staticmethod
    def _network_error(url: str, error: Exception) -> TransportError:
        reason = getattr(error, "reason", None) or str(error)
        logger.warning("Request to %s failed: %s", url, reason)
        return TransportError(url, reason=str(reason))
