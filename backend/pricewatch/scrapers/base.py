"""Base extraction interface.

Every store-specific strategy inherits from ExtractionStrategy and turns a
captured PageSnapshot into a RawExtractionResult. Prices stay raw strings
here; parsing happens once, in the caller, with the locale-aware parser.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Page

from pricewatch.scrapers.utils.proxy_manager import ProxyDescriptor

logger = structlog.get_logger(__name__)

# Only the first 5,000 characters of body text matter to the challenge detector,
# but strategies scan more for last-resort prices.
BODY_TEXT_LIMIT = 20000

# Returns {selector: "visible" | "present"} for every selector that matches
_PROBE_JS = """
(selectors) => {
  const hits = {};
  for (const sel of selectors) {
    let el = null;
    try { el = document.querySelector(sel); } catch (e) { continue; }
    if (!el) continue;
    const rect = el.getBoundingClientRect();
    hits[sel] = (rect.width > 0 && rect.height > 0) ? "visible" : "present";
  }
  return hits;
}
"""


@dataclass
class Identity:
    """Browser identity used for one fetch attempt."""

    user_agent: str
    proxy: Optional[ProxyDescriptor] = None


@dataclass
class ExtractionDiagnostics:
    """How a result was obtained."""

    strategy: str = ""
    attempts: int = 0
    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    challenge: Optional[Dict[str, Any]] = None


@dataclass
class RawExtractionResult:
    """Product data as found on the page, before price normalization."""

    title: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None  # verbatim, e.g. "1.299,00 €"
    currency: str = "EUR"
    store: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    available: bool = True
    url: Optional[str] = None  # canonical URL, set by the fetcher
    diagnostics: ExtractionDiagnostics = field(default_factory=ExtractionDiagnostics)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PageSnapshot:
    """Everything the detector and strategies need from a rendered page.

    Captured once per attempt so extraction is synchronous and can be
    exercised against static HTML.
    """

    url: str
    title: str = ""
    html: str = ""
    body_text: str = ""
    widget_hits: Optional[Dict[str, str]] = None  # None when not probed in a live browser

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html or "", "html.parser")

    @property
    def hostname(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    def widget_state(self, selector: str) -> Optional[str]:
        """Return "visible", "present" or None for a selector.

        Static snapshots have no layout, so a match there counts as present.
        """
        if self.widget_hits is not None:
            return self.widget_hits.get(selector)
        try:
            return "present" if self.soup.select_one(selector) is not None else None
        except Exception:
            # soupsieve rejects a few browser-only selector forms
            return None

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str,
        title: Optional[str] = None,
        widget_hits: Optional[Dict[str, str]] = None,
    ) -> "PageSnapshot":
        """Build a snapshot from static markup."""
        snapshot = cls(url=url, html=html, widget_hits=widget_hits)
        if title is None:
            tag = snapshot.soup.find("title")
            title = tag.get_text(strip=True) if tag else ""
        snapshot.title = title
        body = snapshot.soup.body or snapshot.soup
        snapshot.body_text = body.get_text(" ", strip=True)[:BODY_TEXT_LIMIT]
        return snapshot

    @classmethod
    async def capture(cls, page: Page, probe_selectors: Iterable[str] = ()) -> "PageSnapshot":
        """Capture a snapshot from a live Playwright page.

        Args:
            page: Page after navigation
            probe_selectors: Selectors whose presence and visibility should be recorded
        """
        html = await page.content()
        title = await page.title()
        try:
            body_text = await page.inner_text("body", timeout=5000)
        except Exception as e:
            logger.debug("body_text_unavailable", url=page.url, error=str(e))
            body_text = ""

        selectors: List[str] = list(probe_selectors)
        widget_hits: Dict[str, str] = {}
        if selectors:
            try:
                widget_hits = await page.evaluate(_PROBE_JS, selectors)
            except Exception as e:
                logger.debug("widget_probe_failed", url=page.url, error=str(e))

        return cls(
            url=page.url,
            title=title or "",
            html=html,
            body_text=(body_text or "")[:BODY_TEXT_LIMIT],
            widget_hits=widget_hits,
        )


class ExtractionStrategy(ABC):
    """Turns a captured page into a RawExtractionResult.

    Strategies are stateless; one instance may serve many pages.
    """

    name: str = ""  # e.g. "amazon"
    store: str = ""  # display name, e.g. "Amazon"
    wait_selector: Optional[str] = None  # awaited (bounded, non-fatal) before capture

    def __init__(self):
        self.logger = structlog.get_logger(strategy=self.name)

    @abstractmethod
    def extract(self, page: PageSnapshot, url: str) -> RawExtractionResult:
        """Extract product data.

        Args:
            page: Snapshot of the loaded page
            url: Canonical URL that was requested

        Returns:
            RawExtractionResult; ``price`` is None when no price was found
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(name={self.name})>"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
