"""Tests for the fetch orchestrator: identities, challenges and retries."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricewatch.core.exceptions import ChallengeBlockedError, FetchFailedError
from pricewatch.scrapers.base import ExtractionStrategy
from pricewatch.scrapers.challenge import ChallengeDetector
from pricewatch.scrapers.fetcher import FetchOrchestrator
from pricewatch.scrapers.register_strategies import register_all_strategies
from pricewatch.scrapers.registry import StrategyRegistry
from pricewatch.scrapers.utils.proxy_manager import ProxyManager
from pricewatch.scrapers.utils.rate_limiter import DomainRateLimiter, TokenBucket
from pricewatch.scrapers.utils.retry import backoff_wait
from pricewatch.scrapers.utils.user_agents import UserAgentPool, browser_family
from pricewatch.scrapers.validation import AllowListValidator

from conftest import CHALLENGE_HTML, PRODUCT_HTML, FakeBrowserManager, FakePage

PRODUCT_URL = "https://shop.example.com/p/iphone-15"
CLOUDFLARE_HITS = {"#challenge-running": "visible"}


def challenge_page(n, url):
    return FakePage(CHALLENGE_HTML, url, widget_hits=CLOUDFLARE_HITS)


def product_page(n, url):
    return FakePage(PRODUCT_HTML, url)


def make_fetcher(page_factory, sleep, registry=None, proxies=None, domains=("shop.example.com",), **kwargs):
    browser = FakeBrowserManager(page_factory)
    fetcher = FetchOrchestrator(
        browser=browser,
        registry=registry or StrategyRegistry(),
        validator=AllowListValidator(static_domains=domains),
        detector=ChallengeDetector(),
        user_agents=UserAgentPool(),
        proxies=proxies if proxies is not None else ProxyManager(),
        sleep=sleep,
        wait=kwargs.pop("wait", backoff_wait(1, 30, 1)),
        **kwargs,
    )
    return fetcher, browser


class TestSuccessfulFetch:

    async def test_first_attempt_success(self, sleep_recorder):
        fetcher, browser = make_fetcher(product_page, sleep_recorder)

        result = await fetcher.scrape(PRODUCT_URL + "?utm_campaign=mail")

        assert result.url == PRODUCT_URL
        assert result.title == "Apple iPhone 15 128GB Nero"
        assert result.price == "799,00"
        assert result.diagnostics.strategy == "generic"
        assert result.diagnostics.attempts == 1
        assert result.diagnostics.user_agent == browser.identities[0].user_agent
        assert result.diagnostics.proxy is None
        assert result.diagnostics.challenge["detected"] is False
        assert browser.sessions == 1
        assert browser.pages[0].goto_calls[0]["wait_until"] == "domcontentloaded"
        assert sleep_recorder.delays == []

    async def test_store_strategy_waits_for_selector(self, sleep_recorder):
        fetcher, browser = make_fetcher(
            product_page,
            sleep_recorder,
            registry=register_all_strategies(StrategyRegistry()),
            domains=("www.amazon.it",),
        )

        result = await fetcher.scrape("https://www.amazon.it/dp/B0TEST")

        assert result.diagnostics.strategy == "amazon"
        assert browser.pages[0].waited_for == ["#productTitle"]
        assert browser_family(browser.identities[0].user_agent) in ("chrome", "edge")

    async def test_navigation_timeout_is_not_fatal(self, sleep_recorder):
        fetcher, browser = make_fetcher(
            lambda n, url: FakePage(PRODUCT_HTML, url, goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded")),
            sleep_recorder,
        )

        result = await fetcher.scrape(PRODUCT_URL)

        assert result.price == "799,00"
        assert browser.sessions == 1


class TestChallengeRetries:

    async def test_persistent_challenge_exhausts_budget(self, sleep_recorder):
        fetcher, browser = make_fetcher(challenge_page, sleep_recorder)

        with pytest.raises(ChallengeBlockedError) as exc_info:
            await fetcher.scrape(PRODUCT_URL, max_attempts=2)

        assert exc_info.value.attempts == 2
        assert exc_info.value.challenge_type == "Cloudflare"
        assert exc_info.value.code == "challenge_blocked"
        assert browser.sessions == 2
        assert len(sleep_recorder.delays) == 1
        assert fetcher.detector.stats()["total_detections"] == 2

    async def test_single_attempt_budget(self, sleep_recorder):
        fetcher, browser = make_fetcher(challenge_page, sleep_recorder)

        with pytest.raises(ChallengeBlockedError):
            await fetcher.scrape(PRODUCT_URL, max_attempts=1)

        assert browser.sessions == 1
        assert sleep_recorder.delays == []

    async def test_retry_rotates_identity_and_drops_proxy(self, sleep_recorder):
        proxies = ProxyManager.from_entries(["10.0.0.1:8080", "10.0.0.2:8080"])
        fetcher, browser = make_fetcher(
            lambda n, url: challenge_page(n, url) if n == 1 else product_page(n, url),
            sleep_recorder,
            proxies=proxies,
        )

        result = await fetcher.scrape(PRODUCT_URL, max_attempts=3)

        first, second = browser.identities
        assert first.user_agent != second.user_agent
        assert first.proxy.server != second.proxy.server
        assert proxies.stats()["failed_proxies"] == 1
        assert result.diagnostics.attempts == 2
        assert result.diagnostics.proxy == second.proxy.server
        assert len(sleep_recorder.delays) == 1

    async def test_challenge_on_last_attempt_with_price_is_returned(self, sleep_recorder):
        html = PRODUCT_HTML.replace("<title>Fallback document title</title>", "<title>Just a moment...</title>")
        fetcher, browser = make_fetcher(lambda n, url: FakePage(html, url), sleep_recorder)

        result = await fetcher.scrape(PRODUCT_URL, max_attempts=1)

        assert result.price == "799,00"
        assert result.diagnostics.challenge["detected"] is True

    async def test_robot_vacuum_page_is_one_attempt(self, sleep_recorder):
        html = PRODUCT_HTML.replace(
            "<title>Fallback document title</title>",
            "<title>iRobot Roomba j7+ Robot Aspirapolvere : Amazon.it</title>",
        )
        proxies = ProxyManager.from_entries(["10.0.0.1:8080", "10.0.0.2:8080"])
        fetcher, browser = make_fetcher(lambda n, url: FakePage(html, url), sleep_recorder, proxies=proxies)

        result = await fetcher.scrape(PRODUCT_URL, max_attempts=3)

        assert result.price == "799,00"
        assert result.diagnostics.challenge["detected"] is False
        assert browser.sessions == 1
        assert sleep_recorder.delays == []
        assert proxies.stats()["failed_proxies"] == 0


class TestTransportRetries:

    async def test_transport_errors_back_off_then_fail(self, sleep_recorder):
        fetcher, browser = make_fetcher(
            lambda n, url: FakePage(PRODUCT_HTML, url, goto_error=PlaywrightError("net::ERR_CONNECTION_RESET")),
            sleep_recorder,
        )

        with pytest.raises(FetchFailedError) as exc_info:
            await fetcher.scrape(PRODUCT_URL, max_attempts=4)

        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.cause, PlaywrightError)
        assert browser.sessions == 4

        delays = sleep_recorder.delays
        assert len(delays) == 3
        assert delays == sorted(delays)
        assert 1 <= delays[0] <= 2
        assert 2 <= delays[1] <= 3
        assert 4 <= delays[2] <= 5

    def test_backoff_is_capped(self):
        from tenacity import RetryCallState

        wait = backoff_wait(1, 30, 1)
        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        state.attempt_number = 10
        assert wait(state) == 30

    async def test_attempt_timeout_is_retried(self, sleep_recorder):
        class HangingPage(FakePage):
            async def goto(self, url, wait_until=None, timeout=None):
                await asyncio.sleep(5)

        fetcher, browser = make_fetcher(
            lambda n, url: HangingPage(PRODUCT_HTML, url),
            sleep_recorder,
            attempt_timeout=0.01,
        )

        with pytest.raises(FetchFailedError):
            await fetcher.scrape(PRODUCT_URL, max_attempts=2)

        assert browser.sessions == 2
        assert len(sleep_recorder.delays) == 1

    async def test_non_retryable_error_propagates_immediately(self, sleep_recorder):
        class BrokenStrategy(ExtractionStrategy):
            name = "broken"

            def extract(self, page, url):
                raise ValueError("selector table is wrong")

        fetcher, browser = make_fetcher(
            product_page,
            sleep_recorder,
            registry=StrategyRegistry(default=BrokenStrategy()),
        )

        with pytest.raises(ValueError):
            await fetcher.scrape(PRODUCT_URL, max_attempts=3)

        assert browser.sessions == 1
        assert sleep_recorder.delays == []


class TestPacing:

    def test_store_limits_share_one_bucket(self):
        limiter = DomainRateLimiter()

        assert limiter.get_current_rate("www.amazon.it") == pytest.approx(6)
        assert limiter._get_bucket("www.amazon.it") is limiter._get_bucket("amazon.de")
        assert limiter.get_current_rate("shop.example.com") == pytest.approx(DomainRateLimiter.DEFAULT_RPM)

    def test_custom_limit_replaces_bucket(self):
        limiter = DomainRateLimiter()
        limiter.get_current_rate("www.ebay.it")
        limiter.set_custom_limit("ebay.", 30)

        assert limiter.get_current_rate("www.ebay.it") == pytest.approx(30)

    async def test_burst_within_capacity_does_not_wait(self):
        bucket = TokenBucket(rate=1.0, capacity=2.0)

        assert await bucket.acquire() == 0.0
        assert await bucket.acquire() == 0.0

    async def test_fetch_acquires_before_each_attempt(self, sleep_recorder):
        limiter = DomainRateLimiter()
        limiter.acquire = AsyncMock(return_value=0.0)
        fetcher, browser = make_fetcher(product_page, sleep_recorder, rate_limiter=limiter)

        await fetcher.scrape(PRODUCT_URL)

        limiter.acquire.assert_awaited_once_with("shop.example.com")
