"""Unit tests for icns.catalog.client.CatalogClient.

HTTP is mocked by patching urllib.request.urlopen.
"""

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from icns.catalog.client import CatalogClient
from icns.config import Config
from icns.exceptions import TransportError, UsageError

URLOPEN = "icns.catalog.client.urllib.request.urlopen"


def fake_response(body: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


def json_response(payload) -> MagicMock:
    return fake_response(json.dumps(payload).encode("utf-8"))


def http_error(url: str, code: int, body: bytes = b"") -> urllib.error.HTTPError:
    return urllib.error.HTTPError(url, code, "error", {}, io.BytesIO(body))


@pytest.fixture
def client() -> CatalogClient:
    return CatalogClient(Config(api_base="https://api.test/", timeout=2.5))


def requested_url(mock_urlopen: MagicMock) -> str:
    request = mock_urlopen.call_args.args[0]
    return request.full_url


class TestSearch:
    """Tests for CatalogClient.search()."""

    def test_small_limit_asks_for_at_least_32(self, client):
        icons = [f"mdi:home-{i}" for i in range(40)]
        with patch(URLOPEN, return_value=json_response({"icons": icons})) as mock_urlopen:
            result = client.search("home", 5)
        assert result == icons[:5]
        assert requested_url(mock_urlopen) == "https://api.test/search?query=home&limit=32"

    def test_limit_is_clamped_to_200(self, client):
        with patch(URLOPEN, return_value=json_response({"icons": []})) as mock_urlopen:
            client.search("home", 1000)
        assert requested_url(mock_urlopen).endswith("limit=200")

    def test_query_is_url_encoded(self, client):
        with patch(URLOPEN, return_value=json_response({"icons": []})) as mock_urlopen:
            client.search("arrow left", 10)
        assert "query=arrow%20left" in requested_url(mock_urlopen)

    def test_timeout_and_user_agent(self, client):
        with patch(URLOPEN, return_value=json_response({"icons": []})) as mock_urlopen:
            client.search("home", 10)
        request = mock_urlopen.call_args.args[0]
        assert mock_urlopen.call_args.kwargs["timeout"] == 2.5
        assert request.get_header("User-agent").startswith("icns/")

    def test_missing_icons_key(self, client):
        with patch(URLOPEN, return_value=json_response({"total": 0})):
            assert client.search("nothing", 10) == []


class TestExists:
    def test_head_success(self, client):
        with patch(URLOPEN, return_value=fake_response()) as mock_urlopen:
            assert client.exists("mdi:home") is True
        request = mock_urlopen.call_args.args[0]
        assert request.get_method() == "HEAD"
        assert request.full_url == "https://api.test/mdi/home.svg"

    def test_404_means_absent(self, client):
        error = http_error("https://api.test/mdi/nope.svg", 404)
        with patch(URLOPEN, side_effect=error):
            assert client.exists("mdi:nope") is False

    def test_server_error_raises(self, client):
        error = http_error("https://api.test/mdi/home.svg", 500, b"boom")
        with patch(URLOPEN, side_effect=error):
            with pytest.raises(TransportError) as excinfo:
                client.exists("mdi:home")
        assert excinfo.value.status == 500
        assert excinfo.value.body == "boom"

    def test_invalid_id_is_usage_error(self, client):
        with pytest.raises(UsageError):
            client.exists("home")


class TestErrors:
    """Tests for transport error mapping."""

    def test_http_error_carries_url_status_and_body(self, client):
        error = http_error("https://api.test/collections", 503, b"x" * 5000)
        with patch(URLOPEN, side_effect=error):
            with pytest.raises(TransportError) as excinfo:
                client.collections_metadata()
        err = excinfo.value
        assert err.url == "https://api.test/collections"
        assert err.status == 503
        assert len(err.body) == 2000
        assert err.to_dict()["code"] == "API_ERROR"

    def test_network_error(self, client):
        with patch(URLOPEN, side_effect=urllib.error.URLError("connection refused")):
            with pytest.raises(TransportError) as excinfo:
                client.download_asset("mdi:home")
        assert excinfo.value.status is None
        assert "connection refused" in excinfo.value.reason

    def test_timeout(self, client):
        with patch(URLOPEN, side_effect=TimeoutError("timed out")):
            with pytest.raises(TransportError, match="timed out"):
                client.list_collection_prefixes()

    def test_invalid_json(self, client):
        with patch(URLOPEN, return_value=fake_response(b"<html>")):
            with pytest.raises(TransportError, match="invalid JSON"):
                client.collections_metadata()


class TestCollections:
    """Tests for collection listing."""

    def test_prefixes(self, client):
        payload = {"mdi": {"name": "Material Design Icons", "total": 7000}, "tabler": {"total": 4000}}
        with patch(URLOPEN, return_value=json_response(payload)):
            assert client.list_collection_prefixes() == ["mdi", "tabler"]

    def test_icon_names_without_hidden(self, client):
        payload = {
            "prefix": "mdi",
            "uncategorized": ["home"],
            "categories": {"Account": ["account", "home"]},
            "hidden": ["old-home"],
            "aliases": {"house": "home"},
        }
        with patch(URLOPEN, return_value=json_response(payload)) as mock_urlopen:
            names = client.list_collection_icon_names("mdi", include_hidden=False)
        assert names == ["mdi:home", "mdi:account"]
        assert requested_url(mock_urlopen) == "https://api.test/collection?prefix=mdi"

    def test_icon_names_with_hidden(self, client):
        payload = {
            "uncategorized": ["home"],
            "hidden": ["old-home"],
            "aliases": {"house": "home"},
        }
        with patch(URLOPEN, return_value=json_response(payload)):
            names = client.list_collection_icon_names("mdi", include_hidden=True)
        assert names == ["mdi:home", "mdi:old-home", "mdi:house"]

    def test_download_asset_returns_bytes(self, client):
        with patch(URLOPEN, return_value=fake_response(b"<svg/>")) as mock_urlopen:
            assert client.download_asset("mdi:home") == b"<svg/>"
        assert requested_url(mock_urlopen) == "https://api.test/mdi/home.svg"
