"""
==============================================================================
Catalog Filter Engine
==============================================================================

Pure derivations over a product list:

- available_sizes(): every size label that is in stock somewhere, sorted
- filtered_products(): stable filter by search term and size selection

Search Rules:
------------
- Empty search term matches everything
- Otherwise case-insensitive substring of item_name, color_code or brand

Size Rules:
----------
- "all" matches everything
- Otherwise the product needs that exact label with count > 0

FilterEngine wraps both functions with a last-seen-inputs memo so callers
can re-derive on every change without recomputing identical views.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence, Tuple

from .models import ALL_SIZES, DerivedView, FilterState, Product


# Module logger
logger = logging.getLogger(__name__)


def available_sizes(products: Sequence[Product]) -> List[str]:
    """
    Collect size labels with stock in at least one product.

    Args:
        products: Catalog products

    Returns:
        Sorted, duplicate-free list of size labels
    """
    sizes = set()
    for product in products:
        for entry in product.sizes:
            if entry.count > 0:
                sizes.add(entry.size)
    return sorted(sizes)


def matches_search(product: Product, search_term: str) -> bool:
    """Check the search rule for a single product."""
    if not search_term:
        return True

    needle = search_term.lower()
    if needle in product.item_name.lower():
        return True
    if needle in product.color_code.lower():
        return True
    return bool(product.brand) and needle in product.brand.lower()


def matches_size(product: Product, selected_size: str) -> bool:
    """Check the size rule for a single product."""
    if selected_size == ALL_SIZES:
        return True
    return product.in_stock(selected_size)


def filtered_products(
    products: Sequence[Product],
    search_term: str = "",
    selected_size: str = ALL_SIZES
) -> List[Product]:
    """
    Filter products by search term and size, preserving input order.

    Args:
        products: Catalog products
        search_term: Free text; empty matches all
        selected_size: Size label or "all"

    Returns:
        Ordered subsequence of products satisfying both rules
    """
    return [
        product for product in products
        if matches_search(product, search_term)
        and matches_size(product, selected_size)
    ]


class FilterEngine:
    """
    Memoizing front for the filter functions.

    Remembers the last (products, search_term, selected_size) tuple and the
    view derived from it; an identical tuple returns the cached view.

    Example:
        >>> engine = FilterEngine()
        >>> view = engine.derive(snapshot.products, FilterState(search_term="red"))
        >>> view.available_sizes
        ['M']
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_key: Optional[Tuple[Tuple[Product, ...], str, str]] = None
        self._last_view: Optional[DerivedView] = None
        self._hits = 0
        self._misses = 0

    @property
    def stats(self) -> dict:
        """Memo hit/miss counters."""
        return {"hits": self._hits, "misses": self._misses}

    # Stateless entry points, kept on the class for callers holding an engine
    available_sizes = staticmethod(available_sizes)
    filtered_products = staticmethod(filtered_products)

    def derive(self, products: Sequence[Product], state: FilterState) -> DerivedView:
        """
        Derive sizes and filtered products for one consistent input tuple.

        Args:
            products: Snapshot products read together with state
            state: Current filter state

        Returns:
            DerivedView for the inputs
        """
        key = (tuple(products), state.search_term, state.selected_size)

        with self._lock:
            if self._last_view is not None and self._same_key(key):
                self._hits += 1
                return self._last_view

        view = DerivedView(
            available_sizes=available_sizes(key[0]),
            filtered_products=filtered_products(key[0], key[1], key[2]),
        )

        with self._lock:
            self._last_key = key
            self._last_view = view
            self._misses += 1

        logger.debug(
            f"Derived view: {len(view.filtered_products)}/{len(key[0])} products, "
            f"{len(view.available_sizes)} sizes"
        )
        return view

    def clear(self) -> None:
        """Forget the memoized view."""
        with self._lock:
            self._last_key = None
            self._last_view = None

    def _same_key(self, key: Tuple[Tuple[Product, ...], str, str]) -> bool:
        last = self._last_key
        if last is None:
            return False
        if last[1] != key[1] or last[2] != key[2]:
            return False
        # Snapshots are immutable, so identity is the common fast path
        return last[0] is key[0] or last[0] == key[0]
