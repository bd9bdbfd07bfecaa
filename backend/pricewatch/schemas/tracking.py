"""Tracking scheduler schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class TriggerResponse(BaseModel):
    message: str
    started: bool


class TrackingStatusResponse(BaseModel):
    scheduler_running: bool
    job: Dict[str, Any]
    challenges: Dict[str, Any]
    proxies: Dict[str, int]
    registered_stores: Optional[list] = None
