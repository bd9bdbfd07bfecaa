"""Rework Labs (Shopify) strategy.

The price block shows the compare-at price before the sale price, so the
last European amount is the one to keep.
"""

import re
from typing import Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import element_text, select_first

_EURO_AMOUNT = re.compile(r"[\d.]+,\d{2}")


class ReworkLabsStrategy(StoreStrategy):
    name = "reworklabs"
    store = "Rework Labs"

    title_selectors = ("h1.product-single__title", "h1")
    price_selectors = (".product-price", ".price", "#ProductPrice-product-template")
    availability_text_selectors = (".product-form__cart-submit",)
    availability_text_phrases = ("esaurito", "sold out")

    def extract_price(self, page: PageSnapshot) -> Optional[str]:
        text = element_text(select_first(page.soup, self.price_selectors))
        if not text:
            return None
        matches = _EURO_AMOUNT.findall(text)
        return matches[-1] if matches else None
