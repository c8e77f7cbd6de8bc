"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Catalog store not initialized", "CATALOG_STORE_NOT_INITIALIZED", 503)
        raise AppException("Duplicate SKU", "DUPLICATE_SKU", 502, {"sku": "A-1"})

    Error Codes:
        Catalog fetch boundary:
            - CATALOG_FETCH_FAILED (502)
            - INVALID_CATALOG_PAYLOAD (502)
            - DUPLICATE_SKU (502)

        Store:
            - CATALOG_STORE_NOT_INITIALIZED (503)

        Request:
            - INVALID_SIZE_FILTER (400)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "CATALOG_FETCH_FAILED")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class CatalogFetchError(AppException):
    """
    Raised by the fetch boundary for any failure to produce a product list.

    Transport errors, bad status codes and malformed payloads all surface
    as this type; the catalog store treats every instance the same way.
    """

    def __init__(
        self,
        message: str,
        code: str = "CATALOG_FETCH_FAILED",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, 502, details)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def catalog_fetch_failed(reason: str, source: Optional[str] = None) -> CatalogFetchError:
    """Create catalog fetch failure exception."""
    details = {"source": source} if source else {}
    return CatalogFetchError(f"Failed to fetch catalog: {reason}", details=details)


def invalid_catalog_payload(reason: str) -> CatalogFetchError:
    """Create malformed catalog payload exception."""
    return CatalogFetchError(
        f"Invalid catalog payload: {reason}",
        "INVALID_CATALOG_PAYLOAD"
    )


def duplicate_sku(sku: str) -> CatalogFetchError:
    """Create duplicate SKU exception."""
    return CatalogFetchError(
        f"Duplicate SKU in catalog: {sku}",
        "DUPLICATE_SKU",
        {"sku": sku}
    )


def catalog_store_not_initialized() -> AppException:
    """Create catalog store not initialized exception."""
    return AppException(
        "Catalog store not initialized",
        "CATALOG_STORE_NOT_INITIALIZED",
        503
    )


def invalid_size_filter(size: str) -> AppException:
    """Create invalid size filter exception."""
    return AppException(
        "Size filter must not be blank",
        "INVALID_SIZE_FILTER",
        400,
        {"size": size}
    )
