"""Amazon product page strategy (amazon.it, .com, .co.uk, .de, .fr, .es).

Structure:
  - #productTitle                          product name
  - .a-price .a-offscreen / #corePrice...  price, struck list price carries data-a-strike
  - #landingImage[data-a-dynamic-image]    JSON map of image URL -> size
  - #feature-bullets li span.a-list-item   bullet features
  - #availability                          stock text ("Non disponibile", "Currently unavailable")
"""

import json
import re
from typing import Optional

from pricewatch.scrapers.base import PageSnapshot, RawExtractionResult
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import bullet_list, clean_text, safe_select

_TITLE_SUFFIX = re.compile(r"\s*:\s*Amazon\.(it|com|co\.uk|de|fr|es).*$", re.IGNORECASE)


class AmazonStrategy(StoreStrategy):
    name = "amazon"
    store = "Amazon"
    wait_selector = "#productTitle"

    title_selectors = ("#productTitle",)
    price_selectors = (
        "#corePrice_feature_div .a-price .a-offscreen",
        "#corePriceDisplay_desktop_feature_div .a-price .a-offscreen",
        "#corePrice_desktop .a-price .a-offscreen",
        ".apexPriceToPay .a-offscreen",
        ".priceToPay .a-offscreen",
        "#apex_desktop .a-price .a-offscreen",
        "#priceblock_dealprice",
        "#priceblock_ourprice",
        ".a-price .a-offscreen",
        ".a-price-whole",
    )
    feature_selectors = ("#feature-bullets li span.a-list-item",)
    availability_text_selectors = ("#availability",)
    add_to_cart_selectors = ("#add-to-cart-button", "#buy-now-button")
    reliable_price = True

    def extract_image(self, page: PageSnapshot) -> Optional[str]:
        for el in safe_select(page.soup, "#landingImage, #imgBlkFront, #ebooksImgBlkFront"):
            dynamic = el.get("data-a-dynamic-image")
            if dynamic and dynamic.strip().startswith("{"):
                try:
                    urls = list(json.loads(dynamic).keys())
                except ValueError:
                    urls = []
                if urls:
                    return urls[0]
            src = clean_text(el.get("data-old-hires")) or clean_text(el.get("src"))
            if src and not src.startswith("data:"):
                return src
        return None

    def extract_features(self, page: PageSnapshot):
        # Bullets come first on Amazon; the tech spec table is secondary
        return bullet_list(page.soup, self.feature_selectors) or super().extract_features(page)

    def finalize(self, result: RawExtractionResult, page: PageSnapshot) -> None:
        if result.title:
            result.title = _TITLE_SUFFIX.sub("", result.title)
        features = result.details.get("features") or []
        if features and (not result.description or len(result.description) < 50):
            result.description = "\n".join(features[:3])
