"""Per-user tracking settings with configured defaults."""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.config import settings
from pricewatch.models.user_settings import UserSettings


@dataclass(frozen=True)
class TrackingSettings:
    """Settings as the tracker sees them, defaults already applied."""

    price_check_interval: int
    scrape_delay: int
    max_retries: int
    email_notifications: bool

    @classmethod
    def defaults(cls) -> "TrackingSettings":
        return cls(
            price_check_interval=settings.DEFAULT_PRICE_CHECK_INTERVAL_MINUTES,
            scrape_delay=settings.DEFAULT_SCRAPE_DELAY_MS,
            max_retries=settings.DEFAULT_MAX_RETRIES,
            email_notifications=True,
        )

    @classmethod
    def from_row(cls, row: Optional[UserSettings]) -> "TrackingSettings":
        base = cls.defaults()
        if row is None:
            return base
        # Zero or missing values fall back to the defaults
        return cls(
            price_check_interval=max(1, row.price_check_interval or base.price_check_interval),
            scrape_delay=max(0, row.scrape_delay if row.scrape_delay is not None else base.scrape_delay),
            max_retries=max(1, row.max_retries or base.max_retries),
            email_notifications=(
                base.email_notifications if row.email_notifications is None else row.email_notifications
            ),
        )


class SettingsService:
    """Reads and updates the user_settings table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_row(self, user_id: uuid.UUID) -> Optional[UserSettings]:
        result = await self.db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_effective(self, user_id: uuid.UUID) -> TrackingSettings:
        return TrackingSettings.from_row(await self.get_row(user_id))

    async def update(
        self,
        user_id: uuid.UUID,
        price_check_interval: Optional[int] = None,
        scrape_delay: Optional[int] = None,
        max_retries: Optional[int] = None,
        email_notifications: Optional[bool] = None,
    ) -> UserSettings:
        """Create the row on first write; only the given fields change."""
        row = await self.get_row(user_id)
        if row is None:
            defaults = TrackingSettings.defaults()
            row = UserSettings(
                user_id=user_id,
                price_check_interval=defaults.price_check_interval,
                scrape_delay=defaults.scrape_delay,
                max_retries=defaults.max_retries,
                email_notifications=defaults.email_notifications,
            )
            self.db.add(row)

        if price_check_interval is not None:
            row.price_check_interval = price_check_interval
        if scrape_delay is not None:
            row.scrape_delay = scrape_delay
        if max_retries is not None:
            row.max_retries = max_retries
        if email_notifications is not None:
            row.email_notifications = email_notifications

        await self.db.flush()
        return row
