"""PriceWatch Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricewatch.api.v1.router import api_v1_router
from pricewatch.config import settings
from pricewatch.core.exceptions import (
    ChallengeBlockedError,
    FetchFailedError,
    NotFoundError,
    PriceWatchException,
    UrlValidationError,
)
from pricewatch.db.session import engine
from pricewatch.db.utils import create_tables
from pricewatch.schemas import ErrorDetail, ErrorResponse
from pricewatch.scrapers.register_strategies import register_all_strategies
from pricewatch.scrapers.scheduler import get_tracking_scheduler
from pricewatch.scrapers.utils.browser_manager import get_browser_manager

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("starting_api_server", environment=settings.ENVIRONMENT, debug=settings.DEBUG)

    try:
        await create_tables(engine)
        logger.info("database_tables_ready")
    except Exception as e:
        logger.error("database_init_failed", error=str(e), exc_info=True)

    register_all_strategies()

    scheduler = None
    if settings.ENVIRONMENT != "test":
        scheduler = get_tracking_scheduler()
        scheduler.start()
    else:
        logger.info("scheduler_disabled_test_environment")

    yield

    logger.info("shutting_down_api_server")

    if scheduler:
        await scheduler.stop()

    try:
        await get_browser_manager().stop()
    except Exception as e:
        logger.warning("browser_stop_failed", error=str(e))


app = FastAPI(
    title="PriceWatch API",
    description="Product price tracking with target price alerts",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.CLIENT_URL,
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, exc: PriceWatchException) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(UrlValidationError)
async def url_validation_error_handler(request: Request, exc: UrlValidationError):
    return _error_response(400, exc)


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return _error_response(404, exc)


@app.exception_handler(FetchFailedError)
async def fetch_failed_error_handler(request: Request, exc: FetchFailedError):
    logger.warning("request_fetch_failed", path=request.url.path, error=exc.message)
    return _error_response(502, exc)


@app.exception_handler(ChallengeBlockedError)
async def challenge_blocked_error_handler(request: Request, exc: ChallengeBlockedError):
    logger.warning("request_challenge_blocked", path=request.url.path, challenge_type=exc.challenge_type)
    return _error_response(503, exc)


@app.exception_handler(PriceWatchException)
async def pricewatch_error_handler(request: Request, exc: PriceWatchException):
    logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    return _error_response(500, exc)


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "PriceWatch API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
