"""Remote Iconify catalog access."""

from icns.catalog.client import Catalog, CatalogClient

__all__ = ["Catalog", "CatalogClient"]
