"""
==============================================================================
Catalog Package - Product Cache and Filtering
==============================================================================

Cached product catalog with staleness, retry and request coalescing, plus
pure search/size filtering over the cached products.

Classes:
--------
- Product, SizeStock: Pydantic models for catalog items
- CatalogSnapshot, CatalogStatus: cached state of the catalog
- CatalogStore, AsyncCatalogStore: cache-and-fetch orchestrators
- FilterEngine: memoizing search/size filter

==============================================================================
"""

from .models import (
    ALL_SIZES,
    CatalogSnapshot,
    CatalogStatus,
    DerivedView,
    FilterState,
    Product,
    SizeStock,
)
from .filters import FilterEngine, available_sizes, filtered_products
from .store import (
    AsyncCatalogStore,
    CatalogStore,
    get_catalog_store,
    init_catalog_store,
    peek_catalog_store,
    reset_catalog_store,
)

__all__ = [
    "ALL_SIZES",
    "CatalogSnapshot",
    "CatalogStatus",
    "DerivedView",
    "FilterState",
    "Product",
    "SizeStock",
    "FilterEngine",
    "available_sizes",
    "filtered_products",
    "AsyncCatalogStore",
    "CatalogStore",
    "get_catalog_store",
    "init_catalog_store",
    "peek_catalog_store",
    "reset_catalog_store",
]
