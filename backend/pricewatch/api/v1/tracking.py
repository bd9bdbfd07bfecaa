"""Tracking scheduler endpoints."""

from fastapi import APIRouter, Depends, status

from pricewatch.dependencies import get_fetcher, get_scheduler
from pricewatch.schemas import ApiResponse, TrackingStatusResponse, TriggerResponse
from pricewatch.scrapers.challenge import get_challenge_detector
from pricewatch.scrapers.registry import get_strategy_registry

router = APIRouter()


@router.post("/check-prices", response_model=ApiResponse, status_code=status.HTTP_202_ACCEPTED)
async def check_prices(scheduler=Depends(get_scheduler)):
    """Start a tracking pass in the background and return immediately."""
    started = scheduler.trigger_now()
    message = "Price check started in background" if started else "Price check already running"
    return ApiResponse(status="success", data=TriggerResponse(message=message, started=started))


@router.get("/status", response_model=ApiResponse)
async def tracking_status(scheduler=Depends(get_scheduler), fetcher=Depends(get_fetcher)):
    return ApiResponse(
        status="success",
        data=TrackingStatusResponse(
            scheduler_running=scheduler.is_running(),
            job=scheduler.get_jobs_status(),
            challenges=get_challenge_detector().stats(),
            proxies=fetcher.proxies.stats(),
            registered_stores=get_strategy_registry().get_registered_patterns(),
        ),
    )
