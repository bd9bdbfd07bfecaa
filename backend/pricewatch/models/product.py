"""Tracked product model."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, ForeignKey, Boolean, Numeric, DateTime, Date, Index
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricewatch.models.user import User
    from pricewatch.models.price_history import PriceHistory


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A product page a user asked us to watch.

    Created from the first extraction result, mutated only by a tracking
    pass or a manual refresh, deleted only by its owner.
    """

    __tablename__ = "products"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    url: Mapped[str] = mapped_column(String(2000), nullable=False, comment="Canonical product page URL")

    # Product info
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    store: Mapped[str] = mapped_column(String(100), nullable=False, default="", comment="Derived from hostname")

    # Pricing
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="EUR")
    current_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Last successfully parsed price"
    )
    target_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Notify when the price drops to or below this"
    )

    # Status
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    monitoring_until: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Stop tracking after this date; NULL tracks indefinitely"
    )
    last_checked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Last time a tracking pass updated this product"
    )

    # Open key set: features, brand, seller, rating, shipping, available_sizes, ...
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_products_user_monitoring", "user_id", "monitoring_until"),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="products")
    price_history: Mapped[list["PriceHistory"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PriceHistory.recorded_at.desc()"
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name[:50]}...', user_id={self.user_id})>"
