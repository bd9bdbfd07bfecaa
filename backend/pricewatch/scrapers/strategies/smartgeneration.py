"""Smart Generation (Magento) strategy.

The ``.price`` wrapper mixes labels and amounts, so only the first
European ``1.234,56`` amount is kept.
"""

import re
from typing import Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import select_price

_EURO_AMOUNT = re.compile(r"[\d.]+,\d{2}")


class SmartGenerationStrategy(StoreStrategy):
    name = "smartgeneration"
    store = "Smart Generation"

    title_selectors = ("h1.page-title", "h1")
    price_selectors = (".price",)
    description_selectors = (
        ".product.attribute.description .value",
        ".product-info-description",
        "[itemprop='description']",
    )
    spec_row_selectors = ("#product-attribute-specs-table tr", ".additional-attributes tr")
    feature_selectors = (
        ".product.attribute.description li",
        ".product-info-description li",
        ".product.description li",
    )
    add_to_cart_selectors = ("#product-addtocart-button", "button[title='Aggiungi al Carrello']")
    reliable_price = True

    def extract_price(self, page: PageSnapshot) -> Optional[str]:
        raw = select_price(page.soup, self.price_selectors)
        if not raw:
            return None
        match = _EURO_AMOUNT.search(raw)
        return match.group(0) if match else raw
