"""Back Market strategy.

Besides JSON-LD, Back Market ships its product state in the Next.js
``__NEXT_DATA__`` payload (props.pageProps.product or
props.pageProps.initialState.product), which is used as a second
structured source.
"""

import json
from typing import Any, Dict, List, Optional

from pricewatch.scrapers.base import PageSnapshot
from pricewatch.scrapers.strategies.store import StoreStrategy
from pricewatch.scrapers.utils.extraction import clean_text


def _next_product(page: PageSnapshot) -> Optional[Dict[str, Any]]:
    script = page.soup.find("script", attrs={"id": "__NEXT_DATA__"})
    if script is None:
        return None
    try:
        data = json.loads(script.string or script.get_text())
    except (ValueError, TypeError):
        return None
    props = (data.get("props") or {}).get("pageProps") or {}
    product = props.get("product") or (props.get("initialState") or {}).get("product")
    return product if isinstance(product, dict) else None


class BackMarketStrategy(StoreStrategy):
    name = "backmarket"
    store = "Back Market"

    title_selectors = ("[data-qa='product-title']", "h1")
    price_selectors = ("[data-qa='product-price']", "[data-qa='productpage-product-price']")
    image_selectors = ("img[data-qa='product-image']",)
    description_selectors = ("[data-qa='product-description']", "#product-description")
    feature_selectors = ("[data-qa='technical-specifications'] li", ".technical-specifications li")
    spec_row_selectors = ("dl.spec-list div",)
    out_of_stock_phrases = ("Esaurito", "Out of stock")
    add_to_cart_selectors = ("[data-qa='add-to-cart-button']",)
    requires_purchase_action = True

    def structured_sources(self, page: PageSnapshot) -> List[Dict[str, Any]]:
        sources = super().structured_sources(page)
        product = _next_product(page)
        if product:
            price = product.get("price")
            if isinstance(price, dict):
                price = price.get("amount")
            images = product.get("images") or []
            stock = product.get("stock") or {}
            sources.append({
                "title": clean_text(product.get("title")),
                "image_url": product.get("imageUrl") or (images[0] if images else None),
                "description": clean_text(product.get("description")),
                "price": clean_text(str(price)) if price not in (None, "") else None,
                "currency": None,
                "available": stock.get("available") if isinstance(stock.get("available"), bool) else None,
            })
        return sources

    def extract_features(self, page: PageSnapshot) -> List[str]:
        features = super().extract_features(page)
        if features:
            return features
        product = _next_product(page) or {}
        specs = product.get("specifications")
        if isinstance(specs, list):
            return [
                f"{spec.get('name')}: {spec.get('value')}"
                for spec in specs
                if isinstance(spec, dict) and spec.get("name") and spec.get("value")
            ]
        return []
