"""SQLAlchemy models for PriceWatch.

All models are imported here so metadata.create_all can discover them.
"""

from pricewatch.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from pricewatch.models.user import User
from pricewatch.models.user_settings import UserSettings
from pricewatch.models.product import Product
from pricewatch.models.price_history import PriceHistory
from pricewatch.models.notification import Notification
from pricewatch.models.allowed_domain import AllowedDomain

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "UserSettings",
    "Product",
    "PriceHistory",
    "Notification",
    "AllowedDomain",
]
