"""MediaWorld strategy.

MediaWorld keeps product pages live for delisted items, so a missing
add-to-cart button is the reliable out-of-stock signal.
"""

from pricewatch.scrapers.strategies.store import StoreStrategy


class MediaWorldStrategy(StoreStrategy):
    name = "mediaworld"
    store = "MediaWorld"

    title_selectors = ("h1[data-test='product-title']", "h1")
    price_selectors = ("[data-test='product-price']", "meta[itemprop='price']")
    image_selectors = ("[data-test='mms-image-gallery'] img",)
    add_to_cart_selectors = ("[data-test='add-to-cart-button']",)
    requires_purchase_action = True
