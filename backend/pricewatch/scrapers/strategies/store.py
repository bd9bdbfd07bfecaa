"""Base class for store-specific strategies.

Each field is resolved in three tiers:

1. the store's own markup selectors,
2. a Product-typed JSON-LD block (plus any other structured source a store exposes),
3. the generic Open Graph baseline.

Subclasses mostly declare selector lists and availability policy; the few
stores with quirks override one of the ``extract_*`` hooks.
"""

from typing import Any, Dict, List, Optional, Sequence

from pricewatch.scrapers.base import ExtractionStrategy, PageSnapshot, RawExtractionResult
from pricewatch.scrapers.strategies.generic import GenericStrategy
from pricewatch.scrapers.utils.extraction import (
    bullet_list,
    element_text,
    features_from_sentence,
    features_under_heading,
    find_product_ld,
    is_disabled,
    ld_fields,
    safe_select,
    scan_text_for_price,
    select_attr,
    select_price,
    select_text,
    spec_table,
    truncate,
)


class StoreStrategy(ExtractionStrategy):
    """Selector-driven strategy with structured and generic fallbacks."""

    title_selectors: Sequence[str] = ()
    price_selectors: Sequence[str] = ()
    image_selectors: Sequence[str] = ()
    description_selectors: Sequence[str] = ()
    spec_row_selectors: Sequence[str] = ()
    feature_selectors: Sequence[str] = ()

    # Availability policy
    out_of_stock_selectors: Sequence[str] = ()
    out_of_stock_phrases: Sequence[str] = ()  # searched in rendered body text
    availability_text_selectors: Sequence[str] = ()
    availability_text_phrases: Sequence[str] = ("non disponibile", "currently unavailable", "out of stock", "esaurito")
    add_to_cart_selectors: Sequence[str] = ()
    requires_purchase_action: bool = False  # no enabled add-to-cart button means unavailable
    reliable_price: bool = False  # no resolvable price means unavailable

    # Structured data is tried before markup for the price
    prefer_structured_price: bool = False

    def __init__(self, generic: Optional[GenericStrategy] = None):
        super().__init__()
        self.generic = generic or GenericStrategy()

    # -- markup hooks -----------------------------------------------------

    def extract_title(self, page: PageSnapshot) -> Optional[str]:
        return select_text(page.soup, self.title_selectors)

    def extract_price(self, page: PageSnapshot) -> Optional[str]:
        return select_price(page.soup, self.price_selectors)

    def extract_image(self, page: PageSnapshot) -> Optional[str]:
        return select_attr(page.soup, self.image_selectors)

    def extract_description(self, page: PageSnapshot) -> Optional[str]:
        return select_text(page.soup, self.description_selectors)

    def extract_features(self, page: PageSnapshot) -> List[str]:
        return (
            spec_table(page.soup, self.spec_row_selectors)
            or bullet_list(page.soup, self.feature_selectors)
            or features_under_heading(page.soup)
        )

    def extract_details(self, page: PageSnapshot) -> Dict[str, Any]:
        """Store-specific extras (brand, seller, sizes, ...)."""
        return {}

    def structured_sources(self, page: PageSnapshot) -> List[Dict[str, Any]]:
        """Structured records consulted after markup, in priority order."""
        fields = ld_fields(find_product_ld(page.soup))
        return [fields] if fields else []

    def finalize(self, result: RawExtractionResult, page: PageSnapshot) -> None:
        """Last adjustments once every tier has been applied."""

    # -- availability -----------------------------------------------------

    def explicit_unavailable(self, page: PageSnapshot) -> Optional[str]:
        """Return the marker that proves the item is out of stock, if any."""
        soup = page.soup
        for selector in self.out_of_stock_selectors:
            if safe_select(soup, selector):
                return selector
        for selector in self.availability_text_selectors:
            for el in safe_select(soup, selector):
                text = (element_text(el) or "").lower()
                for phrase in self.availability_text_phrases:
                    if phrase in text:
                        return phrase
        body = (page.body_text or "").lower()
        for phrase in self.out_of_stock_phrases:
            if phrase.lower() in body:
                return phrase
        return None

    def purchase_action(self, page: PageSnapshot) -> Optional[bool]:
        """True for an enabled add-to-cart button, False for a disabled one, None if absent."""
        for selector in self.add_to_cart_selectors:
            found = safe_select(page.soup, selector)
            if found:
                return not is_disabled(found[0])
        return None

    def determine_availability(
        self,
        page: PageSnapshot,
        structured_available: Optional[bool],
        price: Optional[str],
    ) -> Optional[bool]:
        marker = self.explicit_unavailable(page)
        if marker:
            self.logger.debug("out_of_stock_marker", marker=marker)
            return False
        if structured_available is not None:
            return structured_available
        action = self.purchase_action(page)
        if action is not None:
            return action
        if self.requires_purchase_action:
            return False
        if self.reliable_price and not price:
            return False
        return None

    # -- pipeline ---------------------------------------------------------

    def extract(self, page: PageSnapshot, url: str) -> RawExtractionResult:
        baseline = self.generic.metadata(page, url)
        sources = self.structured_sources(page)

        result = RawExtractionResult(store=self.name, currency=baseline.currency)
        result.diagnostics.strategy = self.name

        # Tier 1: store markup
        result.title = self.extract_title(page)
        result.image_url = self.extract_image(page)
        result.description = self.extract_description(page)
        if self.prefer_structured_price:
            result.price = next((s["price"] for s in sources if s.get("price")), None)
        result.price = result.price or self.extract_price(page)

        # Tier 2: structured data
        structured_available: Optional[bool] = None
        for source in sources:
            result.title = result.title or source.get("title")
            result.image_url = result.image_url or source.get("image_url")
            result.description = result.description or source.get("description")
            if not result.price and source.get("price"):
                result.price = source["price"]
                result.currency = source.get("currency") or result.currency
            if structured_available is None and source.get("available") is not None:
                structured_available = source["available"]
            if source.get("brand"):
                result.details.setdefault("brand", source["brand"])

        # Tier 3: generic baseline
        result.title = result.title or baseline.title
        result.image_url = result.image_url or baseline.image_url
        result.description = result.description or baseline.description
        result.price = result.price or baseline.price

        features = self.extract_features(page) or features_from_sentence(result.description)
        if features:
            result.details["features"] = features
        result.details.update({k: v for k, v in self.extract_details(page).items() if v})

        available = self.determine_availability(page, structured_available, result.price)

        if not result.price and available is not False:
            result.price = scan_text_for_price(page.body_text)
            if result.price:
                self.logger.debug("price_from_text_scan", url=url, price=result.price)

        result.available = True if available is None else available
        self.finalize(result, page)
        result.description = truncate(result.description)
        return result
