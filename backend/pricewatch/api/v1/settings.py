"""Tracking settings endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.dependencies import get_current_user_id, get_db
from pricewatch.schemas import ApiResponse, SettingsResponse, SettingsUpdateRequest
from pricewatch.services.settings_service import SettingsService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def get_settings(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Effective settings; defaults when the user never saved any."""
    effective = await SettingsService(db).get_effective(user_id)
    return ApiResponse(status="success", data=SettingsResponse.model_validate(effective))


@router.put("", response_model=ApiResponse)
async def update_settings(
    body: SettingsUpdateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    row = await SettingsService(db).update(user_id, **body.model_dump(exclude_none=True))
    return ApiResponse(status="success", data=SettingsResponse.model_validate(row))
