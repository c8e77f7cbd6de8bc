"""
==============================================================================
Catalog Schemas Module
==============================================================================

Response schemas for the shop browsing endpoints.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.catalog.models import CatalogStatus
from storefront.services.shop_view import ShopView


class ShopViewResponse(BaseModel):
    """Shop view wrapped in the standard envelope."""
    success: bool = Field(default=True)
    view: ShopView


class SizesResponse(BaseModel):
    """Sizes with stock in the cached catalog."""
    success: bool = Field(default=True)
    status: CatalogStatus
    sizes: List[str] = Field(default_factory=list)


class CatalogErrorsResponse(BaseModel):
    """Error messages reported since startup, oldest first."""
    success: bool = Field(default=True)
    total: int = Field(ge=0)
    messages: List[str] = Field(default_factory=list)


class CatalogStatusResponse(BaseModel):
    """Cache metadata without the product list."""
    success: bool = Field(default=True)
    status: CatalogStatus
    products: int = Field(ge=0)
    fresh: bool
    age_seconds: Optional[float] = None
    error_message: Optional[str] = None
