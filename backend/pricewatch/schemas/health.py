"""Health check schemas."""

from typing import Dict, Optional

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    status: str
    database: str
    browser: str
    scheduler: Optional[str] = None
    services: Dict[str, str] = {}
