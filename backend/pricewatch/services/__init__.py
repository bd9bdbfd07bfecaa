"""Services module for business logic and data operations.

Services own the database session they are given and never commit;
request handlers and the tracking pass decide transaction boundaries.
"""

from pricewatch.services.email_service import EmailService, get_email_service
from pricewatch.services.notification_service import NotificationService
from pricewatch.services.product_service import PriceCheckOutcome, ProductService
from pricewatch.services.settings_service import SettingsService, TrackingSettings
from pricewatch.services.user_service import UserService

__all__ = [
    "EmailService",
    "get_email_service",
    "NotificationService",
    "PriceCheckOutcome",
    "ProductService",
    "SettingsService",
    "TrackingSettings",
    "UserService",
]
