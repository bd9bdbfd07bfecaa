"""Retry policy with exponential backoff for page fetches."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
)
from playwright.async_api import Error as PlaywrightError

from pricewatch.config import settings
from pricewatch.core.exceptions import ChallengeDetectedError


# stdlib logger: tenacity's before_sleep_log calls logger.log(level, msg, exc_info=...)
logger = logging.getLogger(__name__)


# Transport, navigation and protocol failures, per-attempt timeouts and
# challenge pages are worth another attempt; anything else is a bug or a
# permanent condition and propagates unchanged.
RETRYABLE_EXCEPTIONS = (
    PlaywrightError,  # also covers playwright's TimeoutError
    ChallengeDetectedError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
)


def backoff_wait(
    base: Optional[float] = None,
    maximum: Optional[float] = None,
    jitter: Optional[float] = None,
) -> wait_exponential_jitter:
    """Delay after attempt n (0-based): min(base * 2**n + uniform(0, jitter), maximum)."""
    return wait_exponential_jitter(
        initial=settings.SCRAPE_BACKOFF_BASE_SECONDS if base is None else base,
        max=settings.SCRAPE_BACKOFF_MAX_SECONDS if maximum is None else maximum,
        exp_base=2,
        jitter=settings.SCRAPE_BACKOFF_JITTER_SECONDS if jitter is None else jitter,
    )


def fetch_retrying(
    max_attempts: int,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    wait=None,
) -> AsyncRetrying:
    """Build the retry loop used by the fetch orchestrator.

    Args:
        max_attempts: Total attempt budget (>= 1)
        sleep: Awaitable sleep used between attempts (tests inject a recorder)
        wait: tenacity wait strategy, defaults to ``backoff_wait()``

    Returns:
        AsyncRetrying that re-raises the last exception on exhaustion
    """
    kwargs = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait or backoff_wait(),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
        **kwargs,
    )
