"""Tracking settings schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    price_check_interval: int
    scrape_delay: int
    max_retries: int
    email_notifications: bool


class SettingsUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their value."""

    price_check_interval: Optional[int] = Field(None, ge=1, le=60 * 24 * 30, description="Minutes")
    scrape_delay: Optional[int] = Field(None, ge=0, le=60000, description="Milliseconds")
    max_retries: Optional[int] = Field(None, ge=1, le=10)
    email_notifications: Optional[bool] = None
