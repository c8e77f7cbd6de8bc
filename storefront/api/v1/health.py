"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter

from storefront.catalog.models import CatalogStatus
from storefront.catalog.store import peek_catalog_store


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def check_catalog(self) -> dict:
        """Check catalog cache status without fetching."""
        store = peek_catalog_store()
        if store is None:
            return {"status": "not_loaded", "products": 0}

        snapshot = store.snapshot
        if snapshot.status == CatalogStatus.ERROR:
            status = "unhealthy"
        elif snapshot.has_data:
            status = "healthy"
        else:
            status = "not_loaded"
        return {"status": status, "products": len(snapshot.products)}

    def get_health(self) -> dict:
        """Get full health status."""
        catalog_info = self.check_catalog()

        overall = "degraded" if catalog_info["status"] == "unhealthy" else "healthy"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "catalog": catalog_info["status"]
            },
            "details": {
                "products_loaded": catalog_info["products"]
            }
        }


@router.get("")
async def health_check():
    """
    Health check endpoint.

    Returns API and catalog cache status.
    """
    controller = HealthController()
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
