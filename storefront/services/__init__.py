"""
==============================================================================
Services Package - Catalog Boundaries and View Composition
==============================================================================

This package provides:
- Catalog fetchers: the single fallible "fetch catalog" operation
- Notifiers: where catalog errors are reported
- ShopViewService: store + filter engine composed into page view state

    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ ShopViewService │  ← view state
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  CatalogStore   │  ← cache, retry, coalescing
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ CatalogFetcher  │  ← HTTP / file
    └─────────────────┘

==============================================================================
"""

from .catalog_fetcher import (
    AsyncHttpCatalogFetcher,
    HttpCatalogFetcher,
    JsonFileCatalogFetcher,
    build_fetcher,
    parse_catalog_payload,
)
from .notifier import LoggingNotifier, Notifier, RecordingNotifier
from .shop_view import CartCounter, EmptyCart, ShopView, ShopViewService

__all__ = [
    "AsyncHttpCatalogFetcher",
    "HttpCatalogFetcher",
    "JsonFileCatalogFetcher",
    "build_fetcher",
    "parse_catalog_payload",
    "LoggingNotifier",
    "Notifier",
    "RecordingNotifier",
    "CartCounter",
    "EmptyCart",
    "ShopView",
    "ShopViewService",
]
