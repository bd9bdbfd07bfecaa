"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from pricewatch.api.v1 import health, notifications, products, scrape, settings, tracking

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(scrape.router, prefix="/scrape", tags=["scrape"])
api_v1_router.include_router(products.router, prefix="/products", tags=["products"])
api_v1_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_v1_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_v1_router.include_router(tracking.router, prefix="/tracking", tags=["tracking"])
