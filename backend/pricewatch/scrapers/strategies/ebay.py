"""eBay item page strategy."""

from typing import Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import select_text


class EbayStrategy(StoreStrategy):
    name = "ebay"
    store = "eBay"

    title_selectors = (".x-item-title__mainTitle", "#itemTitle")
    price_selectors = (".x-price-primary", "#prcIsum", "[itemprop='price']")
    image_selectors = (".ux-image-carousel-item.image-treatment.active img", "#icImg")
    spec_row_selectors = (".ux-layout-section-evo__row .ux-labels-values", ".itemAttr tr")
    out_of_stock_selectors = (".d-quantity__availability .ux-textspans--NEGATIVE",)
    out_of_stock_phrases = ("this listing has ended", "questa inserzione è terminata")
    add_to_cart_selectors = ("#atcBtn_btn_1", "a[data-testid='ux-call-to-action']")

    def extract_title(self, page: PageSnapshot) -> Optional[str]:
        title = select_text(page.soup, self.title_selectors)
        if title:
            title = title.replace("Details about", "").strip()
        return title or None
