"""Notification schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    image_url: Optional[str] = None
    currency: str


class NotificationResponse(BaseModel):
    """A price drop notification."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    type: str
    old_price: Optional[Decimal] = None
    new_price: Optional[Decimal] = None
    read: bool
    created_at: datetime
    product: Optional[NotificationProductBrief] = None
