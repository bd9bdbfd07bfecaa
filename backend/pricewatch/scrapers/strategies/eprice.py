"""ePrice strategy."""

from pricewatch.scrapers.strategies.store import StoreStrategy


class EPriceStrategy(StoreStrategy):
    name = "eprice"
    store = "ePrice"

    title_selectors = ("h1.product-title", "h1[itemprop='name']", ".product-name h1", "h1")
    price_selectors = (
        ".price-current",
        "[itemprop='price']",
        ".product-price",
        "[class*='price'] strong",
        ".offer-price",
    )
    image_selectors = (".product-gallery img", "[itemprop='image']", ".product-image img", "#product-image")
    description_selectors = (".product-description", "[itemprop='description']", ".description-content")
    spec_row_selectors = (".specifications tr", ".tech-specs tr")
    feature_selectors = ("[class*='specs'] li", ".product-features li")
    out_of_stock_selectors = (".not-available", "[class*='out-of-stock']", ".esaurito")
    add_to_cart_selectors = (".add-to-cart", "[data-action='add-to-cart']", "button[class*='cart']")
