"""On-demand extraction schemas."""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ScrapeRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)


class ScrapeResponse(BaseModel):
    """Extraction preview: the raw record plus its parsed price."""

    url: Optional[str] = None
    title: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    parsed_price: Decimal
    currency: str
    store: str
    available: bool
    details: Dict[str, Any] = {}
    diagnostics: Dict[str, Any] = {}
