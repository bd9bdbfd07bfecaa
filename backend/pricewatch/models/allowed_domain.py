"""Dynamically configured allow-list entries."""

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AllowedDomain(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A hostname admitted in addition to the built-in store list."""

    __tablename__ = "allowed_domains"

    hostname: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<AllowedDomain(hostname={self.hostname}, active={self.is_active})>"
