"""
==============================================================================
Catalog Store Module
==============================================================================

In-memory catalog cache with fetch orchestration.

Features:
---------
- Staleness window: load() reuses a snapshot younger than ``stale_after``
- Retry: a failed fetch is retried once after ``retry_delay`` seconds
- Request coalescing: concurrent callers share the single in-flight fetch
- Stale-while-error: a failed refresh keeps the last good products
- One notification per transition into the error state

State Machine:
-------------
    idle ──► loading ──► success
                │  ▲        │
                ▼  └────────┤
              error ────────┘

Two schedulings with the same semantics:

- CatalogStore: blocking fetcher, threads coalesce on a shared Future
- AsyncCatalogStore: asyncio, coroutines coalesce on a shared Task

==============================================================================
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from concurrent.futures import Future, wait
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Sequence

from .models import CatalogSnapshot, CatalogStatus, Product

if TYPE_CHECKING:
    from storefront.services.catalog_fetcher import AsyncCatalogFetcher, CatalogFetcher
    from storefront.services.notifier import Notifier


# Module logger
logger = logging.getLogger(__name__)

SnapshotListener = Callable[[CatalogSnapshot], None]

DEFAULT_STALE_AFTER = 300.0
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RETRIES = 1


def _describe(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__


class BaseCatalogStore:
    """
    Snapshot ownership and state transitions shared by both stores.

    Every mutation swaps the whole CatalogSnapshot under ``_lock``; readers
    take the reference without further locking.
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        stale_after: float = DEFAULT_STALE_AFTER,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        retries: int = DEFAULT_RETRIES,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")

        self._notifier = notifier
        self._stale_after = stale_after
        self._retry_delay = retry_delay
        self._retries = retries
        self._clock = clock

        self._lock = threading.Lock()
        self._snapshot = CatalogSnapshot()
        self._generation = 0
        self._inflight_generation = 0
        self._fetch_count = 0
        self._listeners: List[SnapshotListener] = []

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def snapshot(self) -> CatalogSnapshot:
        """Current snapshot (products, fetch time, status) as one object."""
        return self._snapshot

    @property
    def status(self) -> CatalogStatus:
        return self._snapshot.status

    @property
    def products(self) -> Sequence[Product]:
        return self._snapshot.products

    @property
    def fetch_count(self) -> int:
        """Number of fetch attempts made, retries included."""
        return self._fetch_count

    @property
    def stale_after(self) -> float:
        return self._stale_after

    @property
    def notifier(self) -> Optional[Notifier]:
        return self._notifier

    def now(self) -> float:
        """Current reading of the store's clock."""
        return self._clock()

    def is_fresh(self) -> bool:
        """Check whether load() would skip fetching right now."""
        return self._snapshot.is_fresh(self._clock(), self._stale_after)

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener called with every new snapshot.

        Returns:
            Function that unsubscribes the listener; calling it twice is safe
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: CatalogSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Catalog listener failed")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def reset(self) -> None:
        """
        Drop the cached catalog and return to idle.

        A fetch still in flight completes, but its result is discarded. It
        stays registered as in flight, so the next load() waits for it
        instead of overlapping a second fetch.
        """
        with self._lock:
            self._generation += 1
            self._snapshot = CatalogSnapshot()
            snapshot = self._snapshot
        logger.info("Catalog cache reset")
        self._publish(snapshot)

    def _fresh_snapshot(self) -> Optional[CatalogSnapshot]:
        """Snapshot if load() may skip fetching. Caller holds ``_lock``."""
        if self._snapshot.is_fresh(self._clock(), self._stale_after):
            return self._snapshot
        return None

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _enter_loading(self) -> int:
        """Mark the snapshot as loading. Caller holds ``_lock``."""
        self._snapshot = self._snapshot.model_copy(
            update={"status": CatalogStatus.LOADING}
        )
        self._inflight_generation = self._generation
        return self._generation

    def _inflight_predates_reset(self) -> bool:
        """Caller holds ``_lock`` and has an in-flight fetch."""
        return self._inflight_generation != self._generation

    def _attempt_started(self, attempt: int, attempts: int) -> None:
        with self._lock:
            self._fetch_count += 1
        logger.debug(f"Fetching catalog (attempt {attempt}/{attempts})")

    def _attempt_failed(self, exc: BaseException, attempt: int, attempts: int) -> None:
        if attempt < attempts:
            logger.warning(
                f"Catalog fetch failed ({_describe(exc)}), "
                f"retrying in {self._retry_delay:.1f}s"
            )
        else:
            logger.warning(
                f"Catalog fetch failed ({_describe(exc)}) after {attempts} attempt(s)"
            )

    def _finish_success(self, generation: int, products: Sequence[Product]) -> CatalogSnapshot:
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding catalog fetched before reset")
                return self._snapshot
            self._snapshot = CatalogSnapshot(
                products=tuple(products),
                fetched_at=self._clock(),
                status=CatalogStatus.SUCCESS,
            )
            snapshot = self._snapshot

        logger.info(f"Catalog loaded: {len(snapshot.products)} products")
        self._publish(snapshot)
        return snapshot

    def _finish_failure(self, generation: int, exc: BaseException) -> CatalogSnapshot:
        message = _describe(exc)
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding catalog failure from before reset")
                return self._snapshot
            entered_error = self._snapshot.status != CatalogStatus.ERROR
            self._snapshot = self._snapshot.model_copy(
                update={"status": CatalogStatus.ERROR, "error_message": message}
            )
            snapshot = self._snapshot

        logger.error(
            f"Catalog unavailable: {message} "
            f"(keeping {len(snapshot.products)} cached products)"
        )
        if entered_error:
            self._notify(message)
        self._publish(snapshot)
        return snapshot

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.report_error(message)
        except Exception:
            logger.exception("Error notifier failed")


class CatalogStore(BaseCatalogStore):
    """
    Catalog cache for threaded callers.

    Attributes:
        snapshot: Current CatalogSnapshot
        fetch_count: Fetch attempts made so far

    Example:
        >>> store = CatalogStore(HttpCatalogFetcher(url), notifier=LoggingNotifier())
        >>> snapshot = store.load()
        >>> snapshot.status
        <CatalogStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        fetcher: CatalogFetcher,
        notifier: Optional[Notifier] = None,
        stale_after: float = DEFAULT_STALE_AFTER,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        retries: int = DEFAULT_RETRIES,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        super().__init__(notifier, stale_after, retry_delay, retries, clock)
        self._fetcher = fetcher
        self._sleep = sleep
        self._inflight: Optional[Future] = None

    def load(self) -> CatalogSnapshot:
        """
        Return the cached snapshot, fetching only if it is missing or stale.

        Returns:
            Snapshot after any fetch this call waited for
        """
        snapshot = self._snapshot
        if snapshot.is_fresh(self._clock(), self._stale_after):
            return snapshot
        return self._fetch(respect_freshness=True)

    def refetch(self) -> CatalogSnapshot:
        """Fetch regardless of staleness (still coalesced)."""
        return self._fetch()

    def _fetch(self, respect_freshness: bool = False) -> CatalogSnapshot:
        while True:
            with self._lock:
                fresh = self._fresh_snapshot() if respect_freshness else None
                if fresh is not None:
                    return fresh
                future = self._inflight
                if future is None:
                    future = Future()
                    self._inflight = future
                    generation = self._enter_loading()
                    loading = self._snapshot
                    break
                predates_reset = self._inflight_predates_reset()

            if not predates_reset:
                logger.debug("Joining in-flight catalog fetch")
                return future.result()

            logger.debug("Waiting for catalog fetch started before reset")
            wait([future])

        try:
            self._publish(loading)
            snapshot = self._run_fetch(generation)
        except BaseException as exc:
            self._release(future)
            future.set_exception(exc)
            raise

        self._release(future)
        future.set_result(snapshot)
        return snapshot

    def _release(self, future: Future) -> None:
        with self._lock:
            if self._inflight is future:
                self._inflight = None

    def _run_fetch(self, generation: int) -> CatalogSnapshot:
        attempts = self._retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            self._attempt_started(attempt, attempts)
            try:
                products = self._fetcher.fetch()
            except Exception as e:
                last_error = e
                self._attempt_failed(e, attempt, attempts)
                if attempt < attempts:
                    self._sleep(self._retry_delay)
                continue
            return self._finish_success(generation, products)

        return self._finish_failure(generation, last_error)


class AsyncCatalogStore(BaseCatalogStore):
    """
    Catalog cache for asyncio callers.

    Accepts either an async fetcher or a blocking one; a blocking fetcher
    runs in a worker thread so the event loop never stalls.

    Cancelling a caller does not cancel the shared fetch; it still completes
    and updates the snapshot for everyone else.
    """

    def __init__(
        self,
        fetcher: Any,
        notifier: Optional[Notifier] = None,
        stale_after: float = DEFAULT_STALE_AFTER,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        retries: int = DEFAULT_RETRIES,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        super().__init__(notifier, stale_after, retry_delay, retries, clock)
        self._fetcher: AsyncCatalogFetcher | CatalogFetcher = fetcher
        self._sleep = sleep
        self._inflight: Optional[asyncio.Task] = None

    async def load(self) -> CatalogSnapshot:
        """Return the cached snapshot, fetching only if it is missing or stale."""
        snapshot = self._snapshot
        if snapshot.is_fresh(self._clock(), self._stale_after):
            return snapshot
        return await self._fetch(respect_freshness=True)

    async def refetch(self) -> CatalogSnapshot:
        """Fetch regardless of staleness (still coalesced)."""
        return await self._fetch()

    async def _fetch(self, respect_freshness: bool = False) -> CatalogSnapshot:
        while True:
            with self._lock:
                fresh = self._fresh_snapshot() if respect_freshness else None
                if fresh is not None:
                    return fresh
                task = self._inflight
                if task is None or task.done():
                    generation = self._enter_loading()
                    loading = self._snapshot
                    task = asyncio.ensure_future(self._run_fetch(generation))
                    task.add_done_callback(self._release)
                    self._inflight = task
                    break
                predates_reset = self._inflight_predates_reset()

            if not predates_reset:
                logger.debug("Joining in-flight catalog fetch")
                return await asyncio.shield(task)

            logger.debug("Waiting for catalog fetch started before reset")
            await asyncio.wait([task])

        self._publish(loading)
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task) -> None:
        with self._lock:
            if self._inflight is task:
                self._inflight = None

    async def _call_fetcher(self) -> List[Product]:
        fetch = self._fetcher.fetch
        if inspect.iscoroutinefunction(fetch):
            return await fetch()
        return await asyncio.to_thread(fetch)

    async def _run_fetch(self, generation: int) -> CatalogSnapshot:
        attempts = self._retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            self._attempt_started(attempt, attempts)
            try:
                products = await self._call_fetcher()
            except Exception as e:
                last_error = e
                self._attempt_failed(e, attempt, attempts)
                if attempt < attempts:
                    await self._sleep(self._retry_delay)
                continue
            return self._finish_success(generation, products)

        return self._finish_failure(generation, last_error)


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

_store_instance: Optional[CatalogStore] = None
_store_lock = threading.Lock()


def get_catalog_store() -> CatalogStore:
    """
    Get the process-wide catalog store, creating it from settings on first use.

    Returns:
        Shared CatalogStore
    """
    global _store_instance
    with _store_lock:
        if _store_instance is None:
            from storefront.config import get_settings
            from storefront.services.catalog_fetcher import build_fetcher
            from storefront.services.notifier import RecordingNotifier

            settings = get_settings()
            _store_instance = CatalogStore(
                build_fetcher(settings),
                notifier=RecordingNotifier(),
                stale_after=settings.catalog_stale_after_seconds,
                retry_delay=settings.catalog_retry_delay_seconds,
                retries=settings.catalog_retry_attempts,
            )
            logger.info("Catalog store created")
        return _store_instance


def init_catalog_store(
    fetcher: CatalogFetcher,
    notifier: Optional[Notifier] = None,
    **options: Any
) -> CatalogStore:
    """
    Install an explicitly built catalog store as the process-wide instance.

    Args:
        fetcher: Fetch boundary
        notifier: Error notifier
        **options: Extra CatalogStore keyword arguments

    Returns:
        The installed CatalogStore
    """
    global _store_instance
    store = CatalogStore(fetcher, notifier=notifier, **options)
    with _store_lock:
        _store_instance = store
    return store


def peek_catalog_store() -> Optional[CatalogStore]:
    """Return the process-wide store without creating one."""
    return _store_instance


def reset_catalog_store() -> None:
    """Discard the process-wide store (e.g. on logout)."""
    global _store_instance
    with _store_lock:
        store = _store_instance
        _store_instance = None
    if store is not None:
        store.reset()
