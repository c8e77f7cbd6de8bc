"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Catalog: Shop browsing responses

==============================================================================
"""

from .common import MessageResponse
from .catalog import (
    CatalogErrorsResponse,
    CatalogStatusResponse,
    ShopViewResponse,
    SizesResponse,
)

__all__ = [
    # Common
    "MessageResponse",
    # Catalog
    "CatalogErrorsResponse",
    "CatalogStatusResponse",
    "ShopViewResponse",
    "SizesResponse",
]
