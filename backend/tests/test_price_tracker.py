"""Tests for the periodic tracking pass."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import select

from pricewatch.core.exceptions import FetchFailedError
from pricewatch.models import Notification, PriceHistory, Product, User, UserSettings
from pricewatch.scrapers.scheduler import PriceTrackingScheduler, TRACKING_JOB_ID
from pricewatch.services.price_tracker import EPOCH, PriceTracker, next_due
from pricewatch.services.product_service import as_utc

from conftest import FakeFetcher

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
URL_A = "https://shop.example.com/p/a"
URL_B = "https://shop.example.com/p/b"


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


async def seed_owner(
    session_factory,
    email="owner@example.com",
    interval=60,
    scrape_delay=0,
    max_retries=2,
    email_notifications=True,
    products=(),
):
    """Create a user with settings and products given as (url, current, target) tuples."""
    async with session_factory() as db:
        user = User(email=email)
        db.add(user)
        await db.flush()
        db.add(UserSettings(
            user_id=user.id,
            price_check_interval=interval,
            scrape_delay=scrape_delay,
            max_retries=max_retries,
            email_notifications=email_notifications,
        ))
        for spec in products:
            url, current, target = spec[:3]
            extra = spec[3] if len(spec) > 3 else {}
            db.add(Product(
                user_id=user.id,
                url=url,
                name=f"Product {url[-1]}",
                store="shop.example.com",
                currency="EUR",
                current_price=Decimal(current),
                target_price=Decimal(target) if target else None,
                last_checked_at=extra.get("last_checked_at", T0),
                monitoring_until=extra.get("monitoring_until"),
            ))
        await db.commit()
        return user.id


async def load_product(session_factory, url) -> Product:
    async with session_factory() as db:
        return (await db.execute(select(Product).where(Product.url == url))).scalar_one()


def mock_email_service(result=True):
    service = MagicMock()
    service.send_price_drop = AsyncMock(return_value=result)
    return service


class TestNextDue:

    def test_never_checked_is_due_immediately(self):
        assert next_due(None, 60) == EPOCH + timedelta(minutes=60)

    def test_naive_timestamps_are_utc(self):
        assert next_due(datetime(2026, 3, 1, 12, 0), 30) == T0 + timedelta(minutes=30)


class TestTrackingPass:

    async def test_due_gating(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, interval=60, products=[(URL_A, "120", None)])
        clock = Clock(T0 + timedelta(minutes=60) - timedelta(seconds=1))
        fetcher = FakeFetcher(prices={URL_A: ["110"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, email_service=mock_email_service(), clock=clock, sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()
        assert stats["not_due"] == 1
        assert stats.get("checked", 0) == 0
        assert fetcher.calls == []

        clock.now = T0 + timedelta(minutes=60, seconds=1)
        stats = await tracker.run_tracking_pass()
        assert stats["checked"] == 1
        assert stats["updated"] == 1
        assert stats["price_changes"] == 1
        assert fetcher.calls == [{"url": URL_A, "max_attempts": 2}]

        product = await load_product(session_factory, URL_A)
        assert product.current_price == Decimal("110")
        assert as_utc(product.last_checked_at) == clock.now

    async def test_repeated_checks_notify_once(self, session_factory, sleep_recorder):
        user_id = await seed_owner(session_factory, interval=60, products=[(URL_A, "130", "100")])
        clock = Clock(T0)
        fetcher = FakeFetcher(prices={URL_A: ["120", "90", "85"]})
        email = mock_email_service()
        tracker = PriceTracker(session_factory, fetcher=fetcher, email_service=email, clock=clock, sleep=sleep_recorder)

        for hour in (1, 2, 3):
            clock.now = T0 + timedelta(hours=hour)
            await tracker.run_tracking_pass()
        await tracker.drain(timeout=1)

        async with session_factory() as db:
            notifications = (await db.execute(select(Notification))).scalars().all()
            history = (await db.execute(select(PriceHistory))).scalars().all()

        assert len(notifications) == 1
        assert notifications[0].user_id == user_id
        assert notifications[0].old_price == Decimal("120")
        assert notifications[0].new_price == Decimal("90")
        assert len(history) == 3

        email.send_price_drop.assert_awaited_once()
        kwargs = email.send_price_drop.await_args.kwargs
        assert kwargs["to"] == "owner@example.com"
        assert kwargs["old_price"] == Decimal("120")
        assert kwargs["new_price"] == Decimal("90")
        assert kwargs["target_price"] == Decimal("100")
        assert tracker.pending_emails == 0

    async def test_unchanged_price_is_not_history(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "100.00", None)])
        fetcher = FakeFetcher(prices={URL_A: ["100,01"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats["updated"] == 1
        assert stats.get("price_changes", 0) == 0
        async with session_factory() as db:
            assert (await db.execute(select(PriceHistory))).scalars().all() == []

    async def test_unchanged_price_below_target_is_silent(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "90", "100")])
        email = mock_email_service()
        fetcher = FakeFetcher(prices={URL_A: ["90,00"]})
        tracker = PriceTracker(
            session_factory,
            fetcher=fetcher,
            email_service=email,
            clock=Clock(T0 + timedelta(days=1)),
            sleep=sleep_recorder,
        )

        stats = await tracker.run_tracking_pass()

        assert stats["updated"] == 1
        assert stats.get("notifications", 0) == 0
        async with session_factory() as db:
            assert (await db.execute(select(PriceHistory))).scalars().all() == []
            assert (await db.execute(select(Notification))).scalars().all() == []
        email.send_price_drop.assert_not_awaited()

    async def test_missing_price_writes_nothing(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "120", None)])
        fetcher = FakeFetcher(prices={URL_A: [None]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats["no_price"] == 1
        product = await load_product(session_factory, URL_A)
        assert product.current_price == Decimal("120")
        assert as_utc(product.last_checked_at) == T0

    async def test_fetch_failure_is_counted_and_pass_continues(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "120", None), (URL_B, "50", None)])
        fetcher = FakeFetcher(error=FetchFailedError(URL_A, 2, ConnectionError("reset")))
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats["checked"] == 2
        assert stats["failed"] == 2
        product = await load_product(session_factory, URL_A)
        assert as_utc(product.last_checked_at) == T0

    async def test_scrape_delay_between_checked_products(self, session_factory, sleep_recorder):
        await seed_owner(
            session_factory,
            scrape_delay=500,
            products=[
                (URL_A, "120", None),
                (URL_B, "50", None, {"last_checked_at": T0 + timedelta(days=1)}),
            ],
        )
        fetcher = FakeFetcher(prices={URL_A: ["110"], URL_B: ["45"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        # URL_B was checked "just now" and is not due
        assert stats["checked"] == 1
        assert stats["not_due"] == 1
        assert sleep_recorder.delays == [0.5]

    async def test_expired_monitoring_window_is_skipped(self, session_factory, sleep_recorder):
        now = T0 + timedelta(days=1)
        await seed_owner(
            session_factory,
            products=[
                (URL_A, "120", None, {"monitoring_until": (now - timedelta(days=1)).date()}),
                (URL_B, "50", None, {"monitoring_until": now.date()}),
            ],
        )
        fetcher = FakeFetcher(prices={URL_B: ["45"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(now), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats["products"] == 1
        assert [c["url"] for c in fetcher.calls] == [URL_B]

    async def test_owners_use_their_own_settings(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, email="a@example.com", interval=60, products=[(URL_A, "120", None)])
        await seed_owner(session_factory, email="b@example.com", interval=600, products=[(URL_B, "50", None)])
        fetcher = FakeFetcher(prices={URL_A: ["110"], URL_B: ["45"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(hours=2)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats["owners"] == 2
        assert [c["url"] for c in fetcher.calls] == [URL_A]

    async def test_email_disabled_still_records_notification(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, email_notifications=False, products=[(URL_A, "120", "100")])
        fetcher = FakeFetcher(prices={URL_A: ["90"]})
        email = mock_email_service()
        tracker = PriceTracker(session_factory, fetcher=fetcher, email_service=email, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()
        await tracker.drain(timeout=1)

        assert stats["notifications"] == 1
        email.send_price_drop.assert_not_awaited()

    async def test_email_failure_does_not_fail_pass(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "120", "100")])
        fetcher = FakeFetcher(prices={URL_A: ["90"]})
        email = MagicMock()
        email.send_price_drop = AsyncMock(side_effect=RuntimeError("smtp down"))
        tracker = PriceTracker(session_factory, fetcher=fetcher, email_service=email, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()
        await tracker.drain(timeout=1)

        assert stats["notifications"] == 1
        product = await load_product(session_factory, URL_A)
        assert product.current_price == Decimal("90")

    async def test_empty_database(self, session_factory, sleep_recorder):
        tracker = PriceTracker(session_factory, fetcher=FakeFetcher(), clock=Clock(T0), sleep=sleep_recorder)

        stats = await tracker.run_tracking_pass()

        assert stats == {"products": 0, "owners": 0}
        assert tracker.last_pass_stats == stats
        assert tracker.last_pass_started_at == T0


class TestPassControl:

    async def test_overlapping_pass_is_skipped(self, session_factory, sleep_recorder):
        tracker = PriceTracker(session_factory, fetcher=FakeFetcher(), clock=Clock(T0), sleep=sleep_recorder)

        async with tracker._pass_lock:
            assert tracker.is_pass_running is True
            assert await tracker.run_tracking_pass() is None

    async def test_stop_request_halts_before_next_product(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "120", None), (URL_B, "50", None)])
        fetcher = FakeFetcher(prices={URL_A: ["110"], URL_B: ["45"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)

        tracker.request_stop()
        stats = await tracker.run_tracking_pass()

        assert stats.get("checked", 0) == 0
        assert fetcher.calls == []

    async def test_manual_trigger(self, session_factory, sleep_recorder):
        tracker = PriceTracker(session_factory, fetcher=FakeFetcher(), clock=Clock(T0), sleep=sleep_recorder)
        scheduler = PriceTrackingScheduler(tracker, interval_minutes=5)

        assert scheduler.trigger_now() is True
        await scheduler.stop(drain_timeout=1)

        assert tracker.last_pass_stats == {"products": 0, "owners": 0}

    async def test_manual_trigger_ignored_while_running(self, session_factory, sleep_recorder):
        tracker = PriceTracker(session_factory, fetcher=FakeFetcher(), clock=Clock(T0), sleep=sleep_recorder)
        scheduler = PriceTrackingScheduler(tracker, interval_minutes=5)

        async with tracker._pass_lock:
            assert scheduler.trigger_now() is False

    async def test_scheduler_registers_single_job(self, session_factory, sleep_recorder):
        tracker = PriceTracker(session_factory, fetcher=FakeFetcher(), clock=Clock(T0), sleep=sleep_recorder)
        scheduler = PriceTrackingScheduler(tracker, interval_minutes=5)

        job = scheduler.start()
        try:
            assert job.id == TRACKING_JOB_ID
            assert job.max_instances == 1
            assert scheduler.is_running() is True
            status = scheduler.get_jobs_status()
            assert status["job_id"] == TRACKING_JOB_ID
            assert status["pass_running"] is False
        finally:
            await scheduler.stop(drain_timeout=1)

    async def test_restart_after_stop_checks_products_again(self, session_factory, sleep_recorder):
        await seed_owner(session_factory, products=[(URL_A, "120", None)])
        fetcher = FakeFetcher(prices={URL_A: ["110"]})
        tracker = PriceTracker(session_factory, fetcher=fetcher, clock=Clock(T0 + timedelta(days=1)), sleep=sleep_recorder)
        scheduler = PriceTrackingScheduler(tracker, interval_minutes=5)

        scheduler.start()
        await scheduler.stop(drain_timeout=1)
        scheduler.start()
        try:
            stats = await tracker.run_tracking_pass()
        finally:
            await scheduler.stop(drain_timeout=1)

        assert stats["checked"] == 1
        assert [call["url"] for call in fetcher.calls] == [URL_A]
        product = await load_product(session_factory, URL_A)
        assert product.current_price == Decimal("110")
