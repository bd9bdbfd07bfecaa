"""AliExpress strategy.

Prices are rendered client side, so the orchestrator waits (bounded,
non-fatal) for a price wrapper before capturing the page. Image URLs carry a
``_NNNxNNN`` thumbnail suffix that is stripped to get the full image.
"""

import re
from typing import Any, Dict, Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import select_attr, select_text

_THUMB_SUFFIX = re.compile(r"_\d+x\d+")


class AliExpressStrategy(StoreStrategy):
    name = "aliexpress"
    store = "AliExpress"
    wait_selector = "[class*='price'], [class*='Price']"

    title_selectors = (
        "h1[data-pl='product-title']",
        ".product-title-text",
        "h1[class*='ProductTitle']",
        "[class*='title--wrap'] h1",
        "h1",
    )
    price_selectors = (
        "[class*='product-price-value']",
        "[class*='uniform-banner-box-price']",
        ".product-price-current",
        "[data-pl='product-price']",
        "[class*='Price'] [class*='current']",
        "[itemprop='price']",
    )
    image_selectors = (
        ".pdp-image-view img",
        "[class*='slider--img']",
        ".product-image img",
        "[class*='gallery'] img",
        "[itemprop='image']",
    )
    description_selectors = (".product-description", "[class*='Description']", "[itemprop='description']")
    feature_selectors = (".product-property-list li", "[class*='specifications'] tr", "[class*='detail-list'] li")
    out_of_stock_selectors = ("[class*='soldout']", "[class*='SoldOut']", ".product-no-stock")
    add_to_cart_selectors = ("[data-pl='add-to-cart']", "[class*='addToCart']", "button[class*='add-to-cart']")

    def extract_image(self, page: PageSnapshot) -> Optional[str]:
        image = select_attr(page.soup, self.image_selectors, ("src", "data-src", "content"))
        return _THUMB_SUFFIX.sub("", image, count=1) if image else None

    def extract_details(self, page: PageSnapshot) -> Dict[str, Any]:
        return {
            "seller": select_text(page.soup, ("[class*='store-name']", "[data-pl='store-name']")),
            "shipping": select_text(page.soup, ("[class*='shipping-value']", "[data-pl='shipping-cost']")),
            "rating": select_text(page.soup, ("[class*='review--rating']", "[itemprop='ratingValue']")),
        }
