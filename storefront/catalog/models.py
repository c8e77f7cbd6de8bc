"""
==============================================================================
Catalog Models Module
==============================================================================

Pydantic models for the cached product catalog and its derived views.

Models:
-------
- SizeStock: stock count for one size label
- Product: catalog item with its ordered size list
- CatalogStatus: lifecycle tag of the cached snapshot
- CatalogSnapshot: immutable products + fetch time + status bundle
- FilterState: user-entered search term and size selection
- DerivedView: available sizes and filtered products for one derivation

==============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# Sentinel for "no size filter"
ALL_SIZES = "all"


class SizeStock(BaseModel):
    """Stock count for a single size label."""

    model_config = ConfigDict(frozen=True)

    size: str = Field(..., description="Size label, e.g. 'M' or '42'")
    count: int = Field(..., ge=0, description="Units in stock")


class Product(BaseModel):
    """
    Product model for catalog items.

    Attributes:
        sku: Unique identifier within a snapshot
        item_name: Display name
        color_code: Color code, searchable like the name
        brand: Optional brand name
        sizes: Ordered size/stock entries
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    sku: Union[int, str] = Field(..., description="Stock keeping unit")
    item_name: str = Field(..., description="Product name")
    color_code: str = Field(..., description="Color code")
    brand: Optional[str] = Field(default=None, description="Brand name")
    sizes: List[SizeStock] = Field(default_factory=list, description="Size stock entries")

    def in_stock(self, size: str) -> bool:
        """Check whether the given size label has stock."""
        return any(entry.size == size and entry.count > 0 for entry in self.sizes)


class CatalogStatus(str, Enum):
    """Lifecycle of the cached catalog snapshot."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class CatalogSnapshot(BaseModel):
    """
    Immutable view of the catalog cache.

    Products, fetch time and status always travel together; the store swaps
    whole snapshots, so a reader never pairs a status with the wrong data.
    """

    model_config = ConfigDict(frozen=True)

    products: Tuple[Product, ...] = ()
    fetched_at: Optional[float] = Field(
        default=None,
        description="Monotonic clock reading of the last successful fetch"
    )
    status: CatalogStatus = CatalogStatus.IDLE
    error_message: Optional[str] = None

    @property
    def has_data(self) -> bool:
        """True once any fetch has succeeded (even with zero products)."""
        return self.fetched_at is not None

    def age(self, now: float) -> Optional[float]:
        """Seconds since the last successful fetch, or None if never fetched."""
        if self.fetched_at is None:
            return None
        return now - self.fetched_at

    def is_fresh(self, now: float, stale_after: float) -> bool:
        """Check whether the snapshot is younger than the staleness threshold."""
        age = self.age(now)
        return age is not None and age < stale_after


class FilterState(BaseModel):
    """Search and size selection entered by the shopper."""

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    selected_size: str = ALL_SIZES


class DerivedView(BaseModel):
    """Result of one FilterEngine derivation."""

    available_sizes: List[str] = Field(default_factory=list)
    filtered_products: List[Product] = Field(default_factory=list)
