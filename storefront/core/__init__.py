"""
==============================================================================
Core Package
==============================================================================

Core infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- Exception factory functions for common error scenarios

Usage:
------
    from storefront.core import exceptions
    raise exceptions.catalog_fetch_failed("connection refused")

==============================================================================
"""

from .exceptions import (
    AppException,
    CatalogFetchError,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "CatalogFetchError",
    "register_exception_handlers",
]
