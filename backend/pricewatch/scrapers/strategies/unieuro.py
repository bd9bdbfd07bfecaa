"""Unieuro strategy."""

from pricewatch.scrapers.strategies.store import StoreStrategy


class UnieuroStrategy(StoreStrategy):
    name = "unieuro"
    store = "Unieuro"

    title_selectors = (
        "h1[class*='product-title']",
        "h1[data-testid='product-title']",
        ".product-detail__title",
        "h1",
    )
    price_selectors = (
        "[data-testid='product-price']",
        ".product-price__current",
        ".price-current",
        "[class*='price'] [class*='current']",
        "[itemprop='price']",
    )
    image_selectors = (
        ".product-gallery__main img",
        "[data-testid='product-image'] img",
        ".product-image img",
        "[itemprop='image']",
    )
    description_selectors = (".product-description", "[itemprop='description']", "[data-testid='product-description']")
    spec_row_selectors = (
        ".product-specs tr",
        ".product-specifications tr",
        "[class*='specification'] tr",
    )
    feature_selectors = (".product-highlights li", "[class*='tech-specs'] li", "[class*='feature'] li", "[class*='highlight'] li")
    out_of_stock_selectors = (".product-availability--unavailable", "[class*='out-of-stock']")
    add_to_cart_selectors = ("[data-testid='add-to-cart']", ".add-to-cart-button", "button[class*='add-to-cart']")
