"""Price change log."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricewatch.models.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricewatch.models.product import Product


class PriceHistory(UUIDPrimaryKeyMixin, Base):
    """One detected price change of a tracked product.

    Rows are only ever appended, and only when the new price differs from
    the stored one by more than a cent.
    """

    __tablename__ = "price_history"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Set by the tracking pass so the row and last_checked_at share one clock
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_price_history_product_recorded", "product_id", "recorded_at"),
    )

    product: Mapped["Product"] = relationship(back_populates="price_history")

    def __repr__(self) -> str:
        return f"<PriceHistory {self.product_id} {self.price} @ {self.recorded_at:%Y-%m-%d %H:%M}>"
