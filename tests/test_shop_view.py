"""
==============================================================================
Shop View Service Tests
==============================================================================

Tests for view-state classification on top of the catalog store.

==============================================================================
"""

from storefront.catalog.filters import FilterEngine
from storefront.catalog.models import CatalogStatus, FilterState
from storefront.services.shop_view import FixedCartCounter, ShopViewService

from tests.conftest import ScriptedFetcher


class TestShopViewService:
    """Tests for ShopViewService."""

    def test_loading_before_first_fetch(self, make_store, products):
        """Nothing cached yet reads as loading."""
        service = ShopViewService(make_store(ScriptedFetcher(products)))
        view = service.get_view(FilterState())

        assert view.state == "loading"
        assert view.status == CatalogStatus.IDLE
        assert view.products == []

    def test_products_state(self, make_store, products):
        """Matching products are returned with sizes and totals."""
        service = ShopViewService(make_store(ScriptedFetcher(products)))
        view = service.load(FilterState(search_term="red", selected_size="M"))

        assert view.state == "products"
        assert [p.sku for p in view.products] == [1]
        assert view.available_sizes == ["42", "M", "S"]
        assert view.total_products == 4
        assert view.search_term == "red"
        assert view.selected_size == "M"

    def test_empty_state_is_not_error(self, make_store, products):
        """A filter that matches nothing is the empty state."""
        service = ShopViewService(make_store(ScriptedFetcher(products)))
        view = service.load(FilterState(search_term="red", selected_size="L"))

        assert view.state == "empty"
        assert view.status == CatalogStatus.SUCCESS
        assert view.error_message is None

    def test_empty_catalog_is_empty_state(self, make_store):
        """Zero products renders as empty, not as error."""
        service = ShopViewService(make_store(ScriptedFetcher([])))
        assert service.load(FilterState()).state == "empty"

    def test_error_state_keeps_stale_products(self, make_store, products, fetch_error, clock):
        """A failed refresh still carries the cached products."""
        service = ShopViewService(make_store(ScriptedFetcher(products, fetch_error)))
        service.load(FilterState())
        clock.advance(600)

        view = service.load(FilterState())

        assert view.state == "error"
        assert view.error_message == "Failed to fetch catalog: connection refused"
        assert len(view.products) == 4

    def test_repeated_views_do_not_renotify(self, make_store, fetch_error, notifier):
        """Rendering an error view many times notifies once."""
        service = ShopViewService(make_store(ScriptedFetcher(fetch_error)))
        service.load(FilterState())

        for _ in range(5):
            assert service.get_view(FilterState()).state == "error"

        assert len(notifier.messages) == 1

    def test_refetch_passes_through(self, make_store, products):
        """refetch() hits the fetcher again."""
        fetcher = ScriptedFetcher(products)
        service = ShopViewService(make_store(fetcher))

        service.load(FilterState())
        service.refetch(FilterState())

        assert fetcher.calls == 2

    def test_cart_count(self, make_store, products):
        """Cart count is read from the counter."""
        service = ShopViewService(
            make_store(ScriptedFetcher(products)),
            cart=FixedCartCounter(3),
        )
        assert service.load(FilterState()).cart_item_count == 3

    def test_shared_engine_memoizes(self, make_store, products):
        """Identical inputs reuse the engine's last view."""
        engine = FilterEngine()
        service = ShopViewService(make_store(ScriptedFetcher(products)), engine=engine)

        service.load(FilterState(search_term="hoodie"))
        service.get_view(FilterState(search_term="hoodie"))

        assert engine.stats == {"hits": 1, "misses": 1}
