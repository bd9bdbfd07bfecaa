"""Response envelope shared by every route."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ListMeta(BaseModel):
    """Collection size attached to list responses."""

    total: int = 0


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: ``{"status": "success", "data": ..., "meta": ...}``."""

    status: str = "success"
    data: T
    meta: ListMeta | None = None


class ErrorDetail(BaseModel):
    """Machine-readable error.

    ``code`` is the stable identifier clients branch on (``unsupported_domain``,
    ``challenge_blocked``, ...); ``field`` names the offending request field
    when there is one.
    """

    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    status: str = "error"
    error: ErrorDetail
