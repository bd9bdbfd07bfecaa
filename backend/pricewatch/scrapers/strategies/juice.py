"""Juice (Magento storefront) strategy."""

from pricewatch.scrapers.strategies.store import StoreStrategy


class JuiceStrategy(StoreStrategy):
    name = "juice"
    store = "Juice"

    title_selectors = ("h1.page-title", "h1")
    price_selectors = ("[data-price-type='finalPrice'] .price", ".price-box .price")
    description_selectors = (
        ".product.attribute.description .value",
        ".product-info-description",
        "[itemprop='description']",
    )
    spec_row_selectors = ("#product-attribute-specs-table tr", ".additional-attributes tr", ".product-specs tr")
    feature_selectors = (
        ".product.attribute.description li",
        ".product-info-description li",
        ".product.description li",
        "[class*='feature'] li",
        "[class*='highlight'] li",
    )
    availability_text_selectors = (".stock.available span", ".stock span")
    add_to_cart_selectors = ("#product-addtocart-button",)
