"""Notification events raised by the price tracker."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Numeric, Boolean, String, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricewatch.models.user import User
    from pricewatch.models.product import Product


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One row per target-crossing transition of a product's price."""

    __tablename__ = "notifications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="price_drop",
    )
    old_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    new_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Toggled by the owner, never by the tracker"
    )

    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "read"),
    )

    user: Mapped["User"] = relationship(back_populates="notifications")
    product: Mapped["Product"] = relationship()

    def __repr__(self) -> str:
        return f"<Notification(user={self.user_id}, product={self.product_id}, {self.old_price}->{self.new_price})>"
