"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides sample products, scripted fetchers, a manual clock, and an API
client wired to a test catalog store.

==============================================================================
"""

import asyncio
import threading
from typing import Generator, List, Sequence, Union

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.models import Product, SizeStock
from storefront.catalog.store import CatalogStore, init_catalog_store, reset_catalog_store
from storefront.core import exceptions
from storefront.services.notifier import RecordingNotifier


# ============================================================================
# TEST DOUBLES
# ============================================================================

Outcome = Union[Sequence[Product], Exception]


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedFetcher:
    """Fetcher returning (or raising) scripted outcomes in order; the last one repeats."""

    def __init__(self, *outcomes: Outcome):
        self._outcomes: List[Outcome] = list(outcomes)
        self.calls = 0

    def _next(self) -> List[Product]:
        index = min(self.calls, len(self._outcomes) - 1)
        self.calls += 1
        outcome = self._outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def fetch(self) -> List[Product]:
        return self._next()


class AsyncScriptedFetcher(ScriptedFetcher):
    """Async variant of ScriptedFetcher."""

    async def fetch(self) -> List[Product]:
        await asyncio.sleep(0)
        return self._next()


class BlockingFetcher:
    """Fetcher that blocks until released, for in-flight tests."""

    def __init__(self, products: Sequence[Product]):
        self._products = list(products)
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def fetch(self) -> List[Product]:
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.started.set()
            assert self.release.wait(timeout=5), "fetch was never released"
            return list(self._products)
        finally:
            with self._lock:
                self.active -= 1


class PausingClock(ManualClock):
    """Clock that parks the first read made from a thread with the given name."""

    def __init__(self, thread_name: str, start: float = 1000.0):
        super().__init__(start)
        self._thread_name = thread_name
        self.paused = threading.Event()
        self.resume = threading.Event()

    def __call__(self) -> float:
        if threading.current_thread().name == self._thread_name and not self.paused.is_set():
            self.paused.set()
            assert self.resume.wait(timeout=5), "clock was never resumed"
        return self.now


def make_product(sku, item_name, color_code, sizes, brand=None) -> Product:
    """Build a product from (size, count) pairs."""
    return Product(
        sku=sku,
        item_name=item_name,
        color_code=color_code,
        brand=brand,
        sizes=[SizeStock(size=size, count=count) for size, count in sizes],
    )


# ============================================================================
# PRODUCT FIXTURES
# ============================================================================

@pytest.fixture
def red_shirt() -> Product:
    """Single product from the reference scenario."""
    return make_product(1, "Red Shirt", "RED", [("M", 2), ("L", 0)])


@pytest.fixture
def products(red_shirt: Product) -> List[Product]:
    """Small mixed catalog."""
    return [
        red_shirt,
        make_product(2, "Blue Hoodie", "BLU", [("S", 4), ("M", 1)]),
        make_product(3, "Canvas Sneaker", "WHT", [("42", 3), ("43", 0)], brand="Stride"),
        make_product(4, "Rain Jacket", "YEL", [("L", 0), ("XL", 0)], brand="Redwood"),
    ]


@pytest.fixture
def fetch_error() -> Exception:
    """Typical fetch boundary failure."""
    return exceptions.catalog_fetch_failed("connection refused")


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the store instead of real sleeping."""
    return []


@pytest.fixture
def make_store(clock, notifier, sleeps):
    """Factory building a CatalogStore around a fetcher with test clock and sleep."""
    def factory(fetcher, **options) -> CatalogStore:
        options.setdefault("clock", clock)
        options.setdefault("sleep", sleeps.append)
        return CatalogStore(fetcher, notifier=notifier, **options)
    return factory


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def api_fetcher(products: List[Product]) -> ScriptedFetcher:
    """Fetcher behind the API store; tests may replace its outcomes."""
    return ScriptedFetcher(products)


@pytest.fixture
def client(api_fetcher, notifier, clock, sleeps) -> Generator[TestClient, None, None]:
    """Test client whose process-wide catalog store uses api_fetcher."""
    from storefront.main import app

    init_catalog_store(api_fetcher, notifier, clock=clock, sleep=sleeps.append)

    with TestClient(app) as test_client:
        yield test_client

    reset_catalog_store()
