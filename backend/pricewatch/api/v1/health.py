"""Liveness and dependency status."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.dependencies import get_db, get_scheduler
from pricewatch.schemas import HealthCheckResponse
from pricewatch.scrapers.scheduler import PriceTrackingScheduler
from pricewatch.scrapers.utils.browser_manager import get_browser_manager

logger = structlog.get_logger(__name__)
router = APIRouter()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("health_database_unreachable", error=str(e))
        return f"error: {e}"
    return "ok"


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    scheduler: PriceTrackingScheduler = Depends(get_scheduler),
):
    """Report database reachability plus browser and scheduler state.

    Only the database decides the overall status. The browser launches
    lazily on the first scrape, so "idle" is a healthy answer.
    """
    database = await _database_status(db)
    browser = "running" if get_browser_manager().is_running else "idle"
    tracking = "running" if scheduler.is_running() else "stopped"

    return HealthCheckResponse(
        status="ok" if database == "ok" else "degraded",
        database=database,
        browser=browser,
        scheduler=tracking,
        services={"database": database, "browser": browser, "scheduler": tracking},
    )
