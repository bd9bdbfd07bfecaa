"""Zalando strategy.

Promotional prices come first; the crossed-out original price is skipped by
the struck-price filter. Brand and in-stock sizes go to ``details``.
"""

from typing import Any, Dict, List

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import element_text, safe_select, select_text


class ZalandoStrategy(StoreStrategy):
    name = "zalando"
    store = "Zalando"

    title_selectors = (
        "h1[class*='ProductTitle']",
        "[data-testid='product-name']",
        "h1[class*='product-name']",
        "h1",
    )
    price_selectors = (
        "[class*='PromotionalPrice']",
        "[data-testid='pdp-price-sale']",
        "[class*='sale-price']",
        "[class*='ProductPrice']",
        "[data-testid='pdp-price']",
        "[itemprop='price']",
    )
    image_selectors = (
        "[class*='ProductGallery'] img",
        "[data-testid='pdp-image'] img",
        ".product-media img",
        "[itemprop='image']",
    )
    description_selectors = (
        "[class*='ProductDescription']",
        "[data-testid='product-description']",
        "[itemprop='description']",
    )
    feature_selectors = (
        "[class*='ProductDetail'] li",
        "[data-testid='product-details'] li",
        ".product-attributes li",
    )
    out_of_stock_selectors = ("[class*='SoldOut']", "[data-testid='sold-out-label']", "[class*='out-of-stock']")
    add_to_cart_selectors = ("[data-testid='add-to-cart-button']", "[class*='AddToCart']")

    brand_selectors = ("[class*='BrandName']", "[data-testid='brand-name']")
    size_selectors = ("[class*='SizeSelector'] button", "[data-testid='size-button']")

    def available_sizes(self, page: PageSnapshot) -> List[str]:
        sizes: List[str] = []
        for selector in self.size_selectors:
            for el in safe_select(page.soup, selector):
                if el.has_attr("disabled"):
                    continue
                text = element_text(el)
                if text and text not in sizes:
                    sizes.append(text)
        return sizes

    def extract_details(self, page: PageSnapshot) -> Dict[str, Any]:
        return {
            "brand": select_text(page.soup, self.brand_selectors),
            "available_sizes": self.available_sizes(page),
        }
