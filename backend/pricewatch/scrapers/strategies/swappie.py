"""Swappie refurbished phone strategy.

Swappie renders prices inside generic ``*price*`` wrappers, so only texts
carrying a euro amount of at least three digits are accepted.
"""

import re
from typing import Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import element_text, is_struck, safe_select

_EURO_AMOUNT = re.compile(r"€\s*\d{3,}|\d{3,}(?:[.,]\d{2})?\s*€")


class SwappieStrategy(StoreStrategy):
    name = "swappie"
    store = "Swappie"

    title_selectors = ("h1",)
    price_selectors = (
        "[data-testid='price']",
        "[class*='price'] [class*='value']",
        "h2[class*='price']",
        "div[class*='price'] span",
        "[class*='Price']",
    )
    description_selectors = ("[class*='description']", "[class*='Description']")
    feature_selectors = (
        "[class*='spec'] li",
        "[class*='Spec'] li",
        "[class*='attribute'] li",
        "[class*='Attribute'] li",
        "[class*='detail'] [class*='row']",
    )
    out_of_stock_selectors = ("[class*='out-of-stock']", "[class*='OutOfStock']", "[class*='sold-out']")

    def extract_price(self, page: PageSnapshot) -> Optional[str]:
        for selector in self.price_selectors:
            for el in safe_select(page.soup, selector):
                if is_struck(el):
                    continue
                text = element_text(el)
                if text and _EURO_AMOUNT.search(text):
                    return text
        return None
