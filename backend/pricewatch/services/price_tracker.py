"""Periodic price tracking pass.

One pass loads every product still inside its monitoring window, groups
them by owner and re-checks the ones that are due. Owners run serially
by default; with TRACKING_MAX_CONCURRENT_OWNERS > 1 several owners run at
once but each owner's products are still checked one at a time, paced by
the owner's scrape delay.
"""

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricewatch.config import settings
from pricewatch.models.product import Product
from pricewatch.scrapers.base import utcnow
from pricewatch.services.email_service import EmailService, get_email_service
from pricewatch.services.product_service import PriceCheckOutcome, ProductService, as_utc
from pricewatch.services.settings_service import SettingsService, TrackingSettings
from pricewatch.services.user_service import UserService

logger = structlog.get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def next_due(last_checked_at: Optional[datetime], interval_minutes: int) -> datetime:
    return as_utc(last_checked_at or EPOCH) + timedelta(minutes=interval_minutes)


class PriceTracker:
    """Runs tracking passes and owns the best-effort email tasks they spawn."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        fetcher=None,
        email_service: Optional[EmailService] = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_concurrent_owners: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self._fetcher = fetcher
        self._email_service = email_service
        self._clock = clock
        self._sleep = sleep
        self.max_concurrent_owners = max(1, max_concurrent_owners or settings.TRACKING_MAX_CONCURRENT_OWNERS)
        self._stop = asyncio.Event()
        self._pass_lock = asyncio.Lock()
        self._email_tasks: Set[asyncio.Task] = set()
        self.last_pass_started_at: Optional[datetime] = None
        self.last_pass_stats: Optional[Dict[str, int]] = None
        self.logger = logger.bind(service="price_tracker")

    @property
    def fetcher(self):
        if self._fetcher is None:
            from pricewatch.scrapers.fetcher import get_fetch_orchestrator

            self._fetcher = get_fetch_orchestrator()
        return self._fetcher

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            self._email_service = get_email_service()
        return self._email_service

    @property
    def is_pass_running(self) -> bool:
        return self._pass_lock.locked()

    @property
    def pending_emails(self) -> int:
        return len(self._email_tasks)

    def resume(self) -> None:
        """Allow passes again after request_stop."""
        self._stop.clear()

    def request_stop(self) -> None:
        """Make running passes stop before their next product."""
        self._stop.set()

    async def run_tracking_pass(self) -> Optional[Dict[str, int]]:
        """Check every due product once.

        Returns:
            Pass counters, or None when another pass was already running
        """
        if self._pass_lock.locked():
            self.logger.warning("tracking_pass_already_running")
            return None

        async with self._pass_lock:
            started = self._clock()
            self.last_pass_started_at = started
            stats: Dict[str, int] = defaultdict(int)

            groups = await self._load_active_products(started)
            stats["products"] = sum(len(ids) for ids in groups.values())
            stats["owners"] = len(groups)

            if not groups:
                self.logger.info("no_active_products")
            else:
                self.logger.info("tracking_pass_started", **stats)
                semaphore = asyncio.Semaphore(self.max_concurrent_owners)
                await asyncio.gather(
                    *(self._run_owner(user_id, ids, semaphore, stats) for user_id, ids in groups.items())
                )

            self.last_pass_stats = dict(stats)
            self.logger.info(
                "tracking_pass_completed",
                duration_seconds=round((self._clock() - started).total_seconds(), 2),
                **self.last_pass_stats,
            )
            return self.last_pass_stats

    async def _load_active_products(self, now: datetime) -> Dict[uuid.UUID, List[uuid.UUID]]:
        today = now.date()
        async with self.session_factory() as db:
            result = await db.execute(
                select(Product.id, Product.user_id)
                .where(or_(Product.monitoring_until.is_(None), Product.monitoring_until >= today))
                .order_by(Product.user_id, Product.created_at)
            )
            groups: Dict[uuid.UUID, List[uuid.UUID]] = defaultdict(list)
            for product_id, user_id in result.all():
                groups[user_id].append(product_id)
        return groups

    async def _run_owner(
        self,
        user_id: uuid.UUID,
        product_ids: List[uuid.UUID],
        semaphore: asyncio.Semaphore,
        stats: Dict[str, int],
    ) -> None:
        async with semaphore:
            try:
                async with self.session_factory() as db:
                    tracking = await SettingsService(db).get_effective(user_id)
                    email = None
                    if tracking.email_notifications:
                        email = await UserService(db).lookup_email(user_id)

                for product_id in product_ids:
                    if self._stop.is_set():
                        self.logger.info("tracking_pass_stopping", user_id=str(user_id))
                        return
                    checked = await self._check_product(product_id, tracking, email, stats)
                    if checked and tracking.scrape_delay > 0:
                        await self._sleep(tracking.scrape_delay / 1000)
            except Exception as e:
                self.logger.error("owner_pass_failed", user_id=str(user_id), error=str(e), exc_info=True)

    async def _check_product(
        self,
        product_id: uuid.UUID,
        tracking: TrackingSettings,
        email: Optional[str],
        stats: Dict[str, int],
    ) -> bool:
        """Check one product if it is due. Returns True when a scrape was attempted."""
        async with self.session_factory() as db:
            product = await db.get(Product, product_id)
            if product is None:
                return False

            now = self._clock()
            if now < next_due(product.last_checked_at, tracking.price_check_interval):
                stats["not_due"] += 1
                return False

            stats["checked"] += 1
            self.logger.info("checking_product", product_id=str(product_id), url=product.url)

            try:
                result = await self.fetcher.scrape(product.url, max_attempts=tracking.max_retries)
            except Exception as e:
                stats["failed"] += 1
                self.logger.warning(
                    "product_check_failed",
                    product_id=str(product_id),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return True

            try:
                outcome = await ProductService(db).record_price_check(product, result, now=self._clock())
                await db.commit()
            except Exception as e:
                await db.rollback()
                stats["failed"] += 1
                self.logger.error("product_update_failed", product_id=str(product_id), error=str(e), exc_info=True)
                return True

            if not outcome.updated:
                stats["no_price"] += 1
                return True

            stats["updated"] += 1
            if outcome.price_changed:
                stats["price_changes"] += 1
            if outcome.notification is not None:
                stats["notifications"] += 1
                if email and tracking.email_notifications:
                    self.schedule_price_drop_email(email, product, outcome)
            return True

    # -- email side channel ----------------------------------------------

    def schedule_price_drop_email(self, to: str, product: Product, outcome: PriceCheckOutcome) -> asyncio.Task:
        """Send the alert in the background; failures are only logged."""
        task = asyncio.create_task(
            self.email_service.send_price_drop(
                to=to,
                name=product.name,
                url=product.url,
                image_url=product.image_url,
                currency=product.currency,
                old_price=outcome.old_price,
                new_price=outcome.new_price,
                target_price=product.target_price,
            )
        )
        self._email_tasks.add(task)
        task.add_done_callback(self._email_done)
        return task

    def _email_done(self, task: asyncio.Task) -> None:
        self._email_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error("price_drop_email_failed", error=str(error))
        elif not task.result():
            self.logger.warning("price_drop_email_not_sent")

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight emails, e.g. on shutdown."""
        if self._email_tasks:
            await asyncio.wait(set(self._email_tasks), timeout=timeout)


_tracker: Optional[PriceTracker] = None


def get_price_tracker() -> PriceTracker:
    """Get the global PriceTracker bound to the application database."""
    global _tracker
    if _tracker is None:
        from pricewatch.db.session import async_session_factory

        _tracker = PriceTracker(async_session_factory)
    return _tracker
