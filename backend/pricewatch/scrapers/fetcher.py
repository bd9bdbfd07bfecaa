"""Fetch orchestrator: one URL in, one RawExtractionResult out.

Each attempt picks a fresh identity, opens an isolated browser context,
navigates, captures the page and checks it for automated-traffic
challenges before handing it to the store strategy. Transport errors,
timeouts and challenges are retried with exponential backoff; everything
else propagates unchanged.
"""

import asyncio
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricewatch.config import settings
from pricewatch.core.exceptions import ChallengeBlockedError, ChallengeDetectedError, FetchFailedError
from pricewatch.scrapers.base import ExtractionStrategy, Identity, PageSnapshot, RawExtractionResult
from pricewatch.scrapers.challenge import ChallengeDetector, get_challenge_detector, probe_selectors
from pricewatch.scrapers.registry import StrategyRegistry, get_strategy_registry
from pricewatch.scrapers.validation import AllowListValidator, get_allow_list_validator
from pricewatch.scrapers.utils.browser_manager import BrowserManager, get_browser_manager
from pricewatch.scrapers.utils.proxy_manager import ProxyManager
from pricewatch.scrapers.utils.rate_limiter import DomainRateLimiter
from pricewatch.scrapers.utils.retry import RETRYABLE_EXCEPTIONS, fetch_retrying
from pricewatch.scrapers.utils.user_agents import UserAgentPool

logger = structlog.get_logger(__name__)


class FetchOrchestrator:
    """Validates, fetches and extracts a product page with retries.

    All collaborators are injectable; omitted ones fall back to the
    application-wide instances.
    """

    def __init__(
        self,
        browser: Optional[BrowserManager] = None,
        registry: Optional[StrategyRegistry] = None,
        validator: Optional[AllowListValidator] = None,
        detector: Optional[ChallengeDetector] = None,
        user_agents: Optional[UserAgentPool] = None,
        proxies: Optional[ProxyManager] = None,
        rate_limiter: Optional[DomainRateLimiter] = None,
        max_attempts: Optional[int] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        wait=None,
        navigation_timeout_ms: Optional[int] = None,
        wait_selector_timeout_ms: Optional[int] = None,
        attempt_timeout: Optional[float] = None,
    ):
        self.browser = browser or get_browser_manager()
        self.registry = registry or get_strategy_registry()
        self.validator = validator or get_allow_list_validator()
        self.detector = detector or get_challenge_detector()
        self.user_agents = user_agents or UserAgentPool()
        self.proxies = proxies if proxies is not None else ProxyManager.from_entries(settings.get_proxy_list())
        self.rate_limiter = rate_limiter
        self.max_attempts = max_attempts or settings.SCRAPE_MAX_ATTEMPTS
        self.navigation_timeout_ms = navigation_timeout_ms or settings.NAVIGATION_TIMEOUT_MS
        self.wait_selector_timeout_ms = wait_selector_timeout_ms or settings.WAIT_SELECTOR_TIMEOUT_MS
        self.attempt_timeout = attempt_timeout or settings.SCRAPE_ATTEMPT_TIMEOUT_SECONDS
        self._sleep = sleep
        self._wait = wait
        self.logger = logger.bind(service="fetch_orchestrator")

    def pick_identity(self, hostname: str, attempt_number: int) -> Identity:
        """Domain-biased user agent first, a different one on every retry."""
        if attempt_number <= 1:
            user_agent = self.user_agents.pick_for_domain(hostname)
        else:
            user_agent = self.user_agents.pick_different_from_last()
        return Identity(user_agent=user_agent, proxy=self.proxies.random_active())

    async def scrape(self, url: str, max_attempts: Optional[int] = None) -> RawExtractionResult:
        """Fetch a product page and extract it.

        Args:
            url: Product page URL; validated against the allow-list first
            max_attempts: Attempt budget overriding the configured default

        Returns:
            RawExtractionResult with diagnostics filled in

        Raises:
            InvalidUrlError, UnsupportedProtocolError, UnsupportedDomainError:
                before any browser activity
            ChallengeBlockedError: the last attempt was still a challenge page
            FetchFailedError: the budget ran out on transport errors or timeouts
        """
        canonical = await self.validator.validate(url)
        hostname = urlparse(canonical).hostname or ""
        strategy = self.registry.for_domain(hostname)
        budget = max(1, max_attempts or self.max_attempts)
        attempts_made = 0

        self.logger.info("scrape_started", url=canonical, strategy=strategy.name, max_attempts=budget)

        try:
            async for attempt in fetch_retrying(budget, sleep=self._sleep, wait=self._wait):
                with attempt:
                    attempts_made = attempt.retry_state.attempt_number
                    result = await asyncio.wait_for(
                        self._attempt(canonical, hostname, strategy, attempts_made, budget),
                        timeout=self.attempt_timeout,
                    )
        except ChallengeDetectedError as e:
            raise ChallengeBlockedError(canonical, attempts_made, e.challenge_type) from e
        except RETRYABLE_EXCEPTIONS as e:
            self.logger.error(
                "scrape_failed",
                url=canonical,
                attempts=attempts_made,
                error=f"{type(e).__name__}: {e}",
            )
            raise FetchFailedError(canonical, attempts_made, e) from e

        self.logger.info(
            "scrape_completed",
            url=canonical,
            attempts=attempts_made,
            has_price=bool(result.price),
            available=result.available,
        )
        return result

    async def _attempt(
        self,
        url: str,
        hostname: str,
        strategy: ExtractionStrategy,
        attempt_number: int,
        budget: int,
    ) -> RawExtractionResult:
        identity = self.pick_identity(hostname, attempt_number)

        if self.rate_limiter:
            await self.rate_limiter.acquire(hostname)

        self.logger.info(
            "scrape_attempt",
            url=url,
            attempt=attempt_number,
            user_agent=identity.user_agent,
            proxy=identity.proxy.server if identity.proxy else None,
        )

        async with self.browser.session(identity, url) as page:
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
            except PlaywrightTimeoutError:
                # Keep going with whatever rendered
                self.logger.warning("navigation_timeout", url=url, attempt=attempt_number)

            if strategy.wait_selector:
                try:
                    await page.wait_for_selector(strategy.wait_selector, timeout=self.wait_selector_timeout_ms)
                except PlaywrightTimeoutError:
                    self.logger.debug("wait_selector_timeout", url=url, selector=strategy.wait_selector)

            snapshot = await PageSnapshot.capture(page, probe_selectors())

        challenge = self.detector.inspect(snapshot)
        final_attempt = attempt_number >= budget

        if challenge.detected and not final_attempt:
            self.proxies.mark_failed(identity.proxy)
            raise ChallengeDetectedError(url, challenge.challenge_type, challenge.confidence)

        result = strategy.extract(snapshot, url)
        result.url = url
        result.diagnostics.strategy = strategy.name
        result.diagnostics.attempts = attempt_number
        result.diagnostics.user_agent = identity.user_agent
        result.diagnostics.proxy = identity.proxy.server if identity.proxy else None
        result.diagnostics.challenge = challenge.to_dict()

        if challenge.detected:
            if not result.price:
                self.proxies.mark_failed(identity.proxy)
                raise ChallengeBlockedError(url, attempt_number, challenge.challenge_type)
            self.logger.warning(
                "challenge_detected_but_extracted",
                url=url,
                challenge_type=challenge.challenge_type,
            )

        return result


_orchestrator: Optional[FetchOrchestrator] = None


def get_fetch_orchestrator() -> FetchOrchestrator:
    """Get the global FetchOrchestrator wired to the shared browser and pools."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = FetchOrchestrator(rate_limiter=DomainRateLimiter())
    return _orchestrator
