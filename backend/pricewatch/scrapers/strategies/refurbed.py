"""Refurbed strategy. JSON-LD is authoritative for the price."""

from pricewatch.scrapers.strategies.store import StoreStrategy


class RefurbedStrategy(StoreStrategy):
    name = "refurbed"
    store = "Refurbed"

    title_selectors = ("h1",)
    price_selectors = ("[data-test='product-price']",)
    prefer_structured_price = True
