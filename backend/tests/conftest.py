"""Pytest configuration and shared fixtures."""

import os

# Must be set before pricewatch.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SMTP_USER", "")
os.environ.setdefault("SMTP_PASS", "")

from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from bs4 import BeautifulSoup
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pricewatch.models import Base
from pricewatch.scrapers.base import Identity, RawExtractionResult


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


# ============================================================================
# BROWSER FAKES
# ============================================================================

PRODUCT_HTML = """
<html>
  <head>
    <title>Fallback document title</title>
    <meta property="og:title" content="Apple iPhone 15 128GB Nero">
    <meta property="og:image" content="https://cdn.example.com/iphone.jpg">
    <meta property="og:description" content="Colore: Nero, Memoria: 128GB.">
    <meta property="product:price:amount" content="799,00">
    <meta property="product:price:currency" content="EUR">
  </head>
  <body><h1>Apple iPhone 15</h1><p>Spedizione gratuita</p></body>
</html>
"""

CHALLENGE_HTML = """
<html>
  <head><title>Just a moment...</title></head>
  <body>
    <div id="challenge-running">Checking your browser before accessing the site.</div>
    <p>This process is automatic.</p>
  </body>
</html>
"""


class FakePage:
    """Stands in for a Playwright Page after navigation."""

    def __init__(
        self,
        html: str,
        url: str,
        title: Optional[str] = None,
        body_text: Optional[str] = None,
        widget_hits: Optional[Dict[str, str]] = None,
        goto_error: Optional[BaseException] = None,
    ):
        soup = BeautifulSoup(html, "html.parser")
        self.url = url
        self._html = html
        self._title = title if title is not None else (soup.title.get_text(strip=True) if soup.title else "")
        self._body_text = body_text if body_text is not None else soup.get_text(" ", strip=True)
        self._widget_hits = widget_hits or {}
        self._goto_error = goto_error
        self.goto_calls: List[dict] = []
        self.waited_for: List[str] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self._goto_error is not None:
            raise self._goto_error

    async def wait_for_selector(self, selector, timeout=None):
        self.waited_for.append(selector)

    async def content(self):
        return self._html

    async def title(self):
        return self._title

    async def inner_text(self, selector, timeout=None):
        return self._body_text

    async def evaluate(self, script, selectors):
        return {s: state for s, state in self._widget_hits.items() if s in selectors}


class FakeBrowserManager:
    """Hands out pages from a factory and records every session's identity."""

    def __init__(self, page_factory: Callable[[int, str], FakePage]):
        self.page_factory = page_factory
        self.identities: List[Identity] = []
        self.pages: List[FakePage] = []
        self.is_running = False

    @asynccontextmanager
    async def session(self, identity: Identity, url: str):
        self.identities.append(identity)
        page = self.page_factory(len(self.identities), url)
        self.pages.append(page)
        yield page

    async def stop(self):
        self.is_running = False

    @property
    def sessions(self) -> int:
        return len(self.identities)


class SleepRecorder:
    """Async sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeFetcher:
    """Returns queued prices per URL and records scrape calls."""

    def __init__(self, prices: Optional[Dict[str, List[Optional[str]]]] = None, error: Optional[Exception] = None):
        self.prices = {url: list(values) for url, values in (prices or {}).items()}
        self.error = error
        self.calls: List[dict] = []

    async def scrape(self, url: str, max_attempts: Optional[int] = None) -> RawExtractionResult:
        self.calls.append({"url": url, "max_attempts": max_attempts})
        if self.error is not None:
            raise self.error
        queue = self.prices.get(url) or [None]
        price = queue.pop(0) if len(queue) > 1 else queue[0]
        return RawExtractionResult(
            title="Tracked product",
            price=price,
            currency="EUR",
            store="example",
            url=url,
            available=price is not None,
        )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
