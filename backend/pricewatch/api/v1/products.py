"""Tracked products API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.dependencies import get_current_user_id, get_db, get_fetcher, get_tracker
from pricewatch.schemas import (
    ApiResponse,
    ListMeta,
    PriceCheckResponse,
    PriceHistoryPoint,
    ProductCreateRequest,
    ProductDetailResponse,
    ProductResponse,
)
from pricewatch.services.product_service import ProductService
from pricewatch.services.settings_service import SettingsService
from pricewatch.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_products(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's tracked products, newest first."""
    products = await ProductService(db).list_products(user_id)
    return ApiResponse(
        status="success",
        data=[ProductResponse.model_validate(p) for p in products],
        meta=ListMeta(total=len(products)),
    )


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_product(
    body: ProductCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    fetcher=Depends(get_fetcher),
):
    """Scrape a product page and start tracking it.

    Unsupported URLs fail with 400 before any page is fetched.
    """
    product = await ProductService(db, fetcher=fetcher).add_product(
        user_id=user_id,
        url=body.url,
        target_price=body.target_price,
        monitoring_until=body.monitoring_until,
    )
    await db.refresh(product)
    return ApiResponse(status="success", data=ProductDetailResponse.model_validate(product))


@router.get("/{product_id}", response_model=ApiResponse)
async def get_product(
    product_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id, user_id)
    return ApiResponse(status="success", data=ProductDetailResponse.model_validate(product))


@router.post("/{product_id}/refresh", response_model=ApiResponse)
async def refresh_product(
    product_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    fetcher=Depends(get_fetcher),
    tracker=Depends(get_tracker),
):
    """Re-check one product now, with the same rules as the tracking pass."""
    service = ProductService(db, fetcher=fetcher)
    outcome = await service.refresh_product(product_id, user_id)
    product = await service.get_product(product_id, user_id)
    await db.refresh(product)

    if outcome.notification is not None:
        tracking = await SettingsService(db).get_effective(user_id)
        email = await UserService(db).lookup_email(user_id)
        if tracking.email_notifications and email:
            tracker.schedule_price_drop_email(email, product, outcome)

    return ApiResponse(
        status="success",
        data=PriceCheckResponse(
            product=ProductDetailResponse.model_validate(product),
            old_price=outcome.old_price,
            new_price=outcome.new_price,
            updated=outcome.updated,
            price_changed=outcome.price_changed,
            notified=outcome.notification is not None,
        ),
    )


@router.get("/{product_id}/price-history", response_model=ApiResponse)
async def get_price_history(
    product_id: UUID,
    limit: int = Query(200, ge=1, le=1000, description="Most recent points to return"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Price change points for a product, oldest first."""
    history = await ProductService(db).get_price_history(product_id, user_id, limit=limit)
    return ApiResponse(
        status="success",
        data=[PriceHistoryPoint.model_validate(h) for h in history],
    )


@router.delete("/{product_id}", response_model=ApiResponse)
async def delete_product(
    product_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await ProductService(db).delete_product(product_id, user_id)
    return ApiResponse(status="success", data={"id": str(product_id), "deleted": True})
