"""
==============================================================================
Catalog Fetcher Module
==============================================================================

The fetch boundary: one fallible "fetch catalog" operation.

This module implements:
- CatalogFetcher / AsyncCatalogFetcher: protocols consumed by the store
- HttpCatalogFetcher: blocking GET against the upstream catalog endpoint
- AsyncHttpCatalogFetcher: the same over httpx.AsyncClient
- JsonFileCatalogFetcher: reads the product list from a local JSON file
- parse_catalog_payload(): validation shared by every fetcher

Accepted Payloads:
-----------------
    [ {"sku": 1, "item_name": "...", "color_code": "...", "sizes": [...]}, ... ]

or the same list wrapped as ``{"products": [...]}``.

Every failure (transport, HTTP status, JSON decoding, schema, duplicate SKU)
is raised as CatalogFetchError; the store does not distinguish them.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from storefront.catalog.models import Product
from storefront.config import Settings
from storefront.core import exceptions
from storefront.core.exceptions import CatalogFetchError


# Module logger
logger = logging.getLogger(__name__)

_PRODUCT_LIST = TypeAdapter(List[Product])


class CatalogFetcher(Protocol):
    """Blocking fetch boundary."""

    def fetch(self) -> List[Product]:
        """Return the full product list or raise CatalogFetchError."""


class AsyncCatalogFetcher(Protocol):
    """Awaitable fetch boundary."""

    async def fetch(self) -> List[Product]:
        """Return the full product list or raise CatalogFetchError."""


def parse_catalog_payload(data: Any) -> List[Product]:
    """
    Validate a decoded payload into products.

    Args:
        data: Decoded JSON (list, or dict with a "products" list)

    Returns:
        Validated products in payload order

    Raises:
        CatalogFetchError: On wrong shape, invalid fields or duplicate SKUs
    """
    if isinstance(data, dict):
        if "products" not in data:
            raise exceptions.invalid_catalog_payload("missing 'products' key")
        data = data["products"]

    if not isinstance(data, list):
        raise exceptions.invalid_catalog_payload(
            f"expected a list of products, got {type(data).__name__}"
        )

    try:
        products = _PRODUCT_LIST.validate_python(data)
    except ValidationError as e:
        raise exceptions.invalid_catalog_payload(
            f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"
        ) from e

    seen = set()
    for product in products:
        if product.sku in seen:
            raise exceptions.duplicate_sku(str(product.sku))
        seen.add(product.sku)

    return products


class HttpCatalogFetcher:
    """
    Fetches the catalog from an HTTP endpoint.

    Example:
        >>> fetcher = HttpCatalogFetcher("https://shop.example/api/products")
        >>> products = fetcher.fetch()
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            url: Endpoint returning the product list
            timeout_seconds: Request timeout
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._url = url
        self._timeout = timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        """Upstream endpoint."""
        return self._url

    def fetch(self) -> List[Product]:
        """Fetch and validate the product list."""
        logger.debug(f"GET {self._url}")
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise exceptions.catalog_fetch_failed(
                f"upstream returned {e.response.status_code}", self._url
            ) from e
        except httpx.HTTPError as e:
            raise exceptions.catalog_fetch_failed(str(e) or type(e).__name__, self._url) from e
        except ValueError as e:
            raise exceptions.invalid_catalog_payload(f"response is not JSON ({e})") from e

        return parse_catalog_payload(data)


class AsyncHttpCatalogFetcher:
    """Fetches the catalog from an HTTP endpoint without blocking the event loop."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._transport = transport

    async def fetch(self) -> List[Product]:
        """Fetch and validate the product list."""
        logger.debug(f"GET {self._url} (async)")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise exceptions.catalog_fetch_failed(
                f"upstream returned {e.response.status_code}", self._url
            ) from e
        except httpx.HTTPError as e:
            raise exceptions.catalog_fetch_failed(str(e) or type(e).__name__, self._url) from e
        except ValueError as e:
            raise exceptions.invalid_catalog_payload(f"response is not JSON ({e})") from e

        return parse_catalog_payload(data)


class JsonFileCatalogFetcher:
    """
    Reads the catalog from a JSON file.

    The file is re-read on every fetch, so edits show up after the cache
    goes stale or on refetch().
    """

    def __init__(self, products_file: Path) -> None:
        self._products_file = Path(products_file)

    def fetch(self) -> List[Product]:
        """Read and validate the product list."""
        try:
            with self._products_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise exceptions.catalog_fetch_failed(
                "products file not found", str(self._products_file)
            ) from e
        except OSError as e:
            raise exceptions.catalog_fetch_failed(str(e), str(self._products_file)) from e
        except json.JSONDecodeError as e:
            raise exceptions.invalid_catalog_payload(f"invalid JSON: {e}") from e

        return parse_catalog_payload(data)


def build_fetcher(settings: Settings) -> CatalogFetcher:
    """
    Create the blocking fetcher selected by settings.

    Args:
        settings: Application settings

    Returns:
        HttpCatalogFetcher or JsonFileCatalogFetcher
    """
    if settings.catalog_source == "file":
        logger.info(f"Catalog source: file {settings.catalog_path}")
        return JsonFileCatalogFetcher(settings.catalog_path)

    logger.info(f"Catalog source: {settings.catalog_url}")
    return HttpCatalogFetcher(
        settings.catalog_url,
        timeout_seconds=settings.catalog_request_timeout_seconds,
    )


__all__ = [
    "AsyncCatalogFetcher",
    "AsyncHttpCatalogFetcher",
    "CatalogFetchError",
    "CatalogFetcher",
    "HttpCatalogFetcher",
    "JsonFileCatalogFetcher",
    "build_fetcher",
    "parse_catalog_payload",
]
