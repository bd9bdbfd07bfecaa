"""Notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.core.exceptions import NotFoundError
from pricewatch.dependencies import get_current_user_id, get_db
from pricewatch.schemas import ApiResponse, ListMeta, NotificationResponse
from pricewatch.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    notifications = await NotificationService(db).list_for_user(user_id, unread_only=unread_only, limit=limit)
    return ApiResponse(
        status="success",
        data=[NotificationResponse.model_validate(n) for n in notifications],
        meta=ListMeta(total=len(notifications)),
    )


@router.post("/{notification_id}/read", response_model=ApiResponse)
async def mark_notification_read(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(notification_id, user_id)
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))
    return ApiResponse(status="success", data={"id": str(notification_id), "read": True})
