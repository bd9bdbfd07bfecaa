"""Per-user tracking settings."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricewatch.models.user import User


class UserSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """How often and how politely a user's products are re-checked."""

    __tablename__ = "user_settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True,
    )
    price_check_interval: Mapped[int] = mapped_column(
        Integer, nullable=False, default=360,
        comment="Minutes between checks of the same product"
    )
    scrape_delay: Mapped[int] = mapped_column(
        Integer, nullable=False, default=2000,
        comment="Milliseconds to pause between two checks of this user"
    )
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped["User"] = relationship(back_populates="settings")

    def __repr__(self) -> str:
        return f"<UserSettings(user={self.user_id}, interval={self.price_check_interval}m)>"
