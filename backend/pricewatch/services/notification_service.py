"""Notification rows raised by the price tracker."""

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pricewatch.models.notification import Notification

PRICE_DROP = "price_drop"


class NotificationService:
    """Create, list and mark notifications as read."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_price_drop(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        old_price: Decimal,
        new_price: Decimal,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            product_id=product_id,
            type=PRICE_DROP,
            old_price=old_price,
            new_price=new_price,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def list_for_user(
        self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        """Newest first, with the product eagerly loaded."""
        stmt = (
            select(Notification)
            .options(selectinload(Notification.product))
            .where(Notification.user_id == user_id)
        )
        if unread_only:
            stmt = stmt.where(Notification.read == False)  # noqa: E712
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            return None
        notification.read = True
        await self.db.flush()
        return notification
