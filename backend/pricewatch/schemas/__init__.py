"""Pydantic schemas for the PriceWatch API.

All request/response models are defined here for easy import.
"""

from pricewatch.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, ListMeta
from pricewatch.schemas.product import (
    PriceCheckResponse,
    PriceHistoryPoint,
    ProductCreateRequest,
    ProductDetailResponse,
    ProductResponse,
)
from pricewatch.schemas.scrape import ScrapeRequest, ScrapeResponse
from pricewatch.schemas.settings import SettingsResponse, SettingsUpdateRequest
from pricewatch.schemas.notification import NotificationProductBrief, NotificationResponse
from pricewatch.schemas.health import HealthCheckResponse
from pricewatch.schemas.tracking import TrackingStatusResponse, TriggerResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ListMeta",
    # Product
    "ProductCreateRequest",
    "ProductResponse",
    "ProductDetailResponse",
    "PriceHistoryPoint",
    "PriceCheckResponse",
    # Scrape
    "ScrapeRequest",
    "ScrapeResponse",
    # Settings
    "SettingsResponse",
    "SettingsUpdateRequest",
    # Notification
    "NotificationProductBrief",
    "NotificationResponse",
    # Health
    "HealthCheckResponse",
    # Tracking
    "TrackingStatusResponse",
    "TriggerResponse",
]
