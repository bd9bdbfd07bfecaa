"""Generic extraction strategy.

Reads Open Graph style metadata that almost every storefront emits:
og:title, og:image, og:description, product:price:amount and
product:price:currency. Used on its own for hostnames without a dedicated
strategy, and as the last fallback tier of every store strategy.
"""

from typing import Optional
from urllib.parse import urlparse

from pricewatch.scrapers.base import ExtractionStrategy, PageSnapshot, RawExtractionResult
from pricewatch.scrapers.utils.extraction import (
    clean_text,
    find_product_ld,
    ld_fields,
    meta_content,
    scan_text_for_price,
    truncate,
)

DEFAULT_CURRENCY = "EUR"


def store_from_url(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


class GenericStrategy(ExtractionStrategy):
    """Open Graph metadata, then JSON-LD, then document title and text scan."""

    name = "generic"
    store = ""

    def metadata(self, page: PageSnapshot, url: str, include_document_title: bool = True) -> RawExtractionResult:
        """Baseline record built from meta tags only."""
        soup = page.soup
        title = meta_content(soup, "og:title")
        if not title and include_document_title:
            title = clean_text(page.title)

        return RawExtractionResult(
            title=title,
            image_url=meta_content(soup, "og:image"),
            description=meta_content(soup, "og:description"),
            price=meta_content(soup, "product:price:amount") or meta_content(soup, "og:price:amount"),
            currency=(
                meta_content(soup, "product:price:currency")
                or meta_content(soup, "og:price:currency")
                or DEFAULT_CURRENCY
            ),
            store=store_from_url(url),
        )

    def extract(self, page: PageSnapshot, url: str) -> RawExtractionResult:
        result = self.metadata(page, url, include_document_title=False)
        result.diagnostics.strategy = self.name

        structured = ld_fields(find_product_ld(page.soup))
        if structured:
            result.title = result.title or structured["title"]
            result.image_url = result.image_url or structured["image_url"]
            result.description = result.description or structured["description"]
            if not result.price and structured["price"]:
                result.price = structured["price"]
                result.currency = structured["currency"] or result.currency
            if structured["available"] is not None:
                result.available = structured["available"]

        if not result.title:
            result.title = clean_text(page.title)

        if not result.price and result.available:
            result.price = scan_text_for_price(page.body_text)
            if result.price:
                self.logger.debug("price_from_text_scan", url=url, price=result.price)

        result.description = truncate(result.description)
        return result
