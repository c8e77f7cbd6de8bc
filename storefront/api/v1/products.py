"""
==============================================================================
Product Catalog Endpoints
==============================================================================

Endpoints for browsing the cached catalog with search and size filters.

Endpoints are plain ``def`` functions: a cache miss blocks on the upstream
fetch (plus one retry), so they run in FastAPI's threadpool where the
store's request coalescing applies.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends, Query

from storefront.catalog.filters import FilterEngine
from storefront.catalog.models import ALL_SIZES, FilterState
from storefront.catalog.store import CatalogStore, get_catalog_store
from storefront.core import exceptions
from storefront.schemas import (
    CatalogErrorsResponse,
    CatalogStatusResponse,
    MessageResponse,
    ShopViewResponse,
    SizesResponse,
)
from storefront.services.shop_view import FixedCartCounter, ShopViewService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

# One engine for every request; its memo holds the last derived view
filter_engine = FilterEngine()


def get_store() -> CatalogStore:
    """
    Dependency returning the process-wide catalog store.

    Raises:
        AppException: CATALOG_STORE_NOT_INITIALIZED if the store cannot be
            built from the current settings
    """
    try:
        return get_catalog_store()
    except ValueError as e:
        logger.error(f"Catalog store could not be created: {e}")
        raise exceptions.catalog_store_not_initialized() from e


class ProductController:
    """Controller for shop browsing operations."""

    def __init__(self, store: CatalogStore, cart_items: int = 0):
        self._store = store
        self._service = ShopViewService(
            store,
            engine=filter_engine,
            cart=FixedCartCounter(cart_items),
        )

    @staticmethod
    def build_filter(search: str, size: str) -> FilterState:
        """Build the filter state from query parameters."""
        size = size.strip()
        if not size:
            raise exceptions.invalid_size_filter(size)
        return FilterState(search_term=search.strip(), selected_size=size)

    def browse(self, state: FilterState) -> ShopViewResponse:
        """Load (respecting staleness) and filter."""
        return ShopViewResponse(view=self._service.load(state))

    def refetch(self, state: FilterState) -> ShopViewResponse:
        """Force a refetch and filter."""
        return ShopViewResponse(view=self._service.refetch(state))

    def get_sizes(self) -> SizesResponse:
        """Sizes in stock across the cached catalog."""
        view = self._service.load(FilterState())
        return SizesResponse(status=view.status, sizes=view.available_sizes)

    def get_status(self) -> CatalogStatusResponse:
        """Cache metadata without fetching."""
        snapshot = self._store.snapshot
        age = snapshot.age(self._store.now())
        return CatalogStatusResponse(
            status=snapshot.status,
            products=len(snapshot.products),
            fresh=self._store.is_fresh(),
            age_seconds=round(age, 3) if age is not None else None,
            error_message=snapshot.error_message,
        )

    def get_errors(self) -> CatalogErrorsResponse:
        """Error messages reported by the store's notifier."""
        messages = list(getattr(self._store.notifier, "messages", []))
        return CatalogErrorsResponse(total=len(messages), messages=messages)

    def reset(self) -> MessageResponse:
        """Drop the cached catalog."""
        self._store.reset()
        return MessageResponse(message="Catalog cache cleared")


@router.get("", response_model=ShopViewResponse)
def browse_products(
    search: str = Query("", max_length=200),
    size: str = Query(ALL_SIZES, max_length=50),
    cart_items: int = Query(0, ge=0),
    store: CatalogStore = Depends(get_store)
):
    """Browse the catalog filtered by search term and size."""
    controller = ProductController(store, cart_items)
    return controller.browse(controller.build_filter(search, size))


@router.post("/refetch", response_model=ShopViewResponse)
def refetch_products(
    search: str = Query("", max_length=200),
    size: str = Query(ALL_SIZES, max_length=50),
    cart_items: int = Query(0, ge=0),
    store: CatalogStore = Depends(get_store)
):
    """Refetch the catalog, then return the filtered view."""
    controller = ProductController(store, cart_items)
    return controller.refetch(controller.build_filter(search, size))


@router.get("/sizes", response_model=SizesResponse)
def get_sizes(store: CatalogStore = Depends(get_store)):
    """Get all sizes currently in stock."""
    return ProductController(store).get_sizes()


@router.get("/status", response_model=CatalogStatusResponse)
def get_status(store: CatalogStore = Depends(get_store)):
    """Get cache status without triggering a fetch."""
    return ProductController(store).get_status()


@router.get("/errors", response_model=CatalogErrorsResponse)
def get_errors(store: CatalogStore = Depends(get_store)):
    """Get reported catalog errors."""
    return ProductController(store).get_errors()


@router.post("/reset", response_model=MessageResponse)
def reset_cache(store: CatalogStore = Depends(get_store)):
    """Clear the cached catalog (e.g. after logout)."""
    return ProductController(store).reset()
