"""Product Pydantic schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PriceHistoryPoint(BaseModel):
    """Single price history data point."""

    model_config = ConfigDict(from_attributes=True)

    price: Decimal
    recorded_at: datetime


class ProductCreateRequest(BaseModel):
    """Start tracking a product page."""

    url: str = Field(..., min_length=1, max_length=2000)
    target_price: Optional[Decimal] = Field(None, gt=0)
    monitoring_until: Optional[date] = None


class ProductResponse(BaseModel):
    """Product response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    store: str
    current_price: Decimal
    target_price: Optional[Decimal] = None
    currency: str
    image_url: Optional[str] = None
    available: bool
    monitoring_until: Optional[date] = None
    last_checked_at: Optional[datetime] = None


class ProductDetailResponse(ProductResponse):
    """Detailed product response with additional information."""

    description: Optional[str] = None
    details: Dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


class PriceCheckResponse(BaseModel):
    """Result of a manual refresh."""

    product: ProductDetailResponse
    old_price: Decimal
    new_price: Decimal
    updated: bool
    price_changed: bool
    notified: bool
