"""User directory model."""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricewatch.models.product import Product
    from pricewatch.models.notification import Notification
    from pricewatch.models.user_settings import UserSettings


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Owner of tracked products. Authentication lives outside this service."""

    __tablename__ = "users"

    email: Mapped[Optional[str]] = mapped_column(
        String(320), unique=True, nullable=True, index=True,
        comment="Where price drop alerts are sent"
    )

    products: Mapped[List["Product"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    settings: Mapped[Optional["UserSettings"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
