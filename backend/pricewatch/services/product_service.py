"""Product service for tracked products and their price history.

Handles adding a product from its first extraction, manual refreshes,
and the price-check rule shared with the tracking pass: update the
current price, append history on a real change, and raise a notification
when the price crosses the owner's target.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from urllib.parse import urlparse

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.core.exceptions import NotFoundError
from pricewatch.models.notification import Notification
from pricewatch.models.price_history import PriceHistory
from pricewatch.models.product import Product
from pricewatch.scrapers.base import RawExtractionResult, utcnow
from pricewatch.scrapers.strategies.generic import store_from_url
from pricewatch.scrapers.utils.normalizer import parse_price
from pricewatch.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

# Differences at or below one cent are rounding noise, not price changes
PRICE_EPSILON = Decimal("0.01")


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite hands these back) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class PriceCheckOutcome:
    """What one price check did to a product."""

    product_id: uuid.UUID
    old_price: Decimal
    new_price: Decimal
    updated: bool = False
    price_changed: bool = False
    notification: Optional[Notification] = None


class ProductService:
    """Service for tracked products.

    The fetcher is only resolved when a scrape is needed, so read-only
    callers never touch the browser stack.
    """

    def __init__(self, db: AsyncSession, fetcher=None):
        self.db = db
        self._fetcher = fetcher
        self.logger = logger.bind(service="product_service")

    @property
    def fetcher(self):
        if self._fetcher is None:
            from pricewatch.scrapers.fetcher import get_fetch_orchestrator

            self._fetcher = get_fetch_orchestrator()
        return self._fetcher

    # -- queries ----------------------------------------------------------

    async def list_products(self, user_id: uuid.UUID) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.user_id == user_id)
            .order_by(Product.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_product(self, product_id: uuid.UUID, user_id: uuid.UUID) -> Product:
        """Fetch a product owned by the user.

        Raises:
            NotFoundError: unknown id or owned by someone else
        """
        result = await self.db.execute(
            select(Product).where(Product.id == product_id, Product.user_id == user_id)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    async def get_price_history(
        self, product_id: uuid.UUID, user_id: uuid.UUID, limit: int = 200
    ) -> List[PriceHistory]:
        """Oldest first, ready for charting."""
        await self.get_product(product_id, user_id)
        result = await self.db.execute(
            select(PriceHistory)
            .where(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.recorded_at.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def delete_product(self, product_id: uuid.UUID, user_id: uuid.UUID) -> None:
        product = await self.get_product(product_id, user_id)
        await self.db.delete(product)
        await self.db.flush()
        self.logger.info("product_deleted", product_id=str(product_id), user_id=str(user_id))

    # -- mutations --------------------------------------------------------

    async def add_product(
        self,
        user_id: uuid.UUID,
        url: str,
        target_price: Optional[Decimal] = None,
        monitoring_until: Optional[date] = None,
    ) -> Product:
        """Scrape a URL and start tracking it for the user.

        Validation and fetch errors propagate to the caller untouched.
        """
        result = await self.fetcher.scrape(url)
        canonical = result.url or url

        price = parse_price(result.price, result.currency)
        product = Product(
            user_id=user_id,
            url=canonical,
            name=result.title or urlparse(canonical).hostname or canonical,
            image_url=result.image_url,
            description=result.description,
            store=result.store or store_from_url(canonical),
            currency=result.currency or "EUR",
            current_price=price,
            target_price=target_price,
            available=result.available,
            monitoring_until=monitoring_until,
            last_checked_at=utcnow(),
            details=result.details or {},
        )
        self.db.add(product)
        await self.db.flush()

        self.logger.info(
            "product_added",
            product_id=str(product.id),
            user_id=str(user_id),
            store=product.store,
            price=float(price),
        )
        return product

    async def refresh_product(self, product_id: uuid.UUID, user_id: uuid.UUID) -> PriceCheckOutcome:
        """Re-scrape one product now, applying the same rule as a tracking pass."""
        product = await self.get_product(product_id, user_id)
        result = await self.fetcher.scrape(product.url)
        return await self.record_price_check(product, result)

    async def record_price_check(
        self,
        product: Product,
        result: RawExtractionResult,
        now: Optional[datetime] = None,
    ) -> PriceCheckOutcome:
        """Apply one extraction result to a product.

        A zero or unparsable price leaves the product untouched. Otherwise
        the current price, availability and last check time are updated; a
        change larger than one cent appends history, and a change that
        crosses the target from above raises one notification.
        """
        now = now or utcnow()
        old_price = Decimal(product.current_price or 0)
        new_price = parse_price(result.price, result.currency)
        outcome = PriceCheckOutcome(product_id=product.id, old_price=old_price, new_price=new_price)

        if new_price <= 0:
            self.logger.info("price_not_found", product_id=str(product.id), raw_price=result.price)
            return outcome

        product.current_price = new_price
        product.available = result.available
        if product.last_checked_at is None or as_utc(product.last_checked_at) <= now:
            product.last_checked_at = now
        outcome.updated = True

        if abs(new_price - old_price) > PRICE_EPSILON:
            outcome.price_changed = True
            self.db.add(PriceHistory(product_id=product.id, price=new_price, recorded_at=now))
            self.logger.info(
                "price_changed",
                product_id=str(product.id),
                old_price=float(old_price),
                new_price=float(new_price),
            )

            target = product.target_price
            if target is not None and old_price > target >= new_price:
                outcome.notification = await NotificationService(self.db).create_price_drop(
                    user_id=product.user_id,
                    product_id=product.id,
                    old_price=old_price,
                    new_price=new_price,
                )
                self.logger.info(
                    "target_price_reached",
                    product_id=str(product.id),
                    target_price=float(target),
                    new_price=float(new_price),
                )

        await self.db.flush()
        return outcome
