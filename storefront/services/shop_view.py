"""
==============================================================================
Shop View Service Module
==============================================================================

Composes the catalog store and the filter engine into the state a shop page
renders.

View States:
-----------
- loading:  nothing cached yet and a fetch is pending
- error:    last fetch failed (cached products, if any, are still included)
- empty:    catalog or filter produced no products ("no products found")
- products: at least one product to show

The snapshot and the filter state are read once per call, so the derived
view never mixes products and filters from different moments.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from storefront.catalog.filters import FilterEngine
from storefront.catalog.models import CatalogSnapshot, CatalogStatus, FilterState, Product
from storefront.catalog.store import CatalogStore


# Module logger
logger = logging.getLogger(__name__)


class CartCounter(Protocol):
    """Read-only source of the current cart item count."""

    def item_count(self) -> int:
        """Number of items in the shopper's cart."""


class EmptyCart:
    """Cart counter for callers without a cart."""

    def item_count(self) -> int:
        return 0


class FixedCartCounter:
    """Cart counter holding a count supplied by the caller."""

    def __init__(self, count: int) -> None:
        self._count = count

    def item_count(self) -> int:
        return self._count


class ShopView(BaseModel):
    """Everything a shop page needs to render one frame."""

    state: str = Field(..., description="loading, error, empty or products")
    status: CatalogStatus
    error_message: Optional[str] = None
    search_term: str = ""
    selected_size: str = "all"
    available_sizes: List[str] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    total_products: int = Field(default=0, ge=0)
    cart_item_count: int = Field(default=0, ge=0)


class ShopViewService:
    """
    Builds ShopView objects from the catalog store.

    Example:
        >>> service = ShopViewService(store)
        >>> view = service.load(FilterState(search_term="red", selected_size="M"))
        >>> view.state
        'products'
    """

    def __init__(
        self,
        store: CatalogStore,
        engine: Optional[FilterEngine] = None,
        cart: Optional[CartCounter] = None
    ) -> None:
        self._store = store
        self._engine = engine or FilterEngine()
        self._cart = cart or EmptyCart()

    def get_view(self, state: FilterState) -> ShopView:
        """Build the view from the current snapshot without fetching."""
        return self._build(self._store.snapshot, state)

    def load(self, state: FilterState) -> ShopView:
        """Load (respecting staleness) and build the view."""
        return self._build(self._store.load(), state)

    def refetch(self, state: FilterState) -> ShopView:
        """Force a fetch and build the view."""
        return self._build(self._store.refetch(), state)

    def _build(self, snapshot: CatalogSnapshot, state: FilterState) -> ShopView:
        derived = self._engine.derive(snapshot.products, state)

        return ShopView(
            state=self._classify(snapshot, derived.filtered_products),
            status=snapshot.status,
            error_message=snapshot.error_message,
            search_term=state.search_term,
            selected_size=state.selected_size,
            available_sizes=derived.available_sizes,
            products=derived.filtered_products,
            total_products=len(snapshot.products),
            cart_item_count=max(self._cart.item_count(), 0),
        )

    @staticmethod
    def _classify(snapshot: CatalogSnapshot, products: List[Product]) -> str:
        if snapshot.status == CatalogStatus.ERROR:
            return "error"
        if not snapshot.has_data and snapshot.status in (
            CatalogStatus.IDLE, CatalogStatus.LOADING
        ):
            return "loading"
        if not products:
            return "empty"
        return "products"
