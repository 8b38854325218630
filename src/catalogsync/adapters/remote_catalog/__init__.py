"""Public interface for the remote catalog adapter."""

from __future__ import annotations

from .client import RemoteCatalogAPIError, RemoteCatalogFetcher, build_remote_catalog_fetcher
from .schema import RemoteItem, RemotePayload, RemoteProductPage
from .translator import (
    PLACEHOLDER_THUMBNAIL,
    TAX_DISPLAY_NAMES,
    classify_tax,
    map_remote_item,
    product_type_for,
    resolve_thumbnail,
)

__all__ = [
    "PLACEHOLDER_THUMBNAIL",
    "TAX_DISPLAY_NAMES",
    "RemoteCatalogAPIError",
    "RemoteCatalogFetcher",
    "RemoteItem",
    "RemotePayload",
    "RemoteProductPage",
    "build_remote_catalog_fetcher",
    "classify_tax",
    "map_remote_item",
    "product_type_for",
    "resolve_thumbnail",
]
