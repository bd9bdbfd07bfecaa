"""BeautifulSoup helpers shared by extraction strategies."""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

import structlog
from bs4 import BeautifulSoup, Tag

logger = structlog.get_logger(__name__)


DESCRIPTION_LIMIT = 500
FEATURE_MAX_LEN = 200
FEATURE_LIMIT = 30

_WS = re.compile(r"\s+")

# Markers of a struck-through / list price that must not win over the sale price
_STRUCK_TAGS = {"del", "s", "strike"}
_STRUCK_CLASS_HINTS = ("original", "old-price", "oldprice", "was-price", "strike", "crossed", "regular-price", "list-price")

_FEATURE_HEADING = re.compile(
    r"\b(features?|details?|specifications?|specs|caratteristiche|specifiche|dettagli)\b",
    re.IGNORECASE,
)

# Currency-adjacent number, e.g. "€ 1.299,00", "129,99 €", "$1,234.56", "99,00 EUR"
_TEXT_PRICE = re.compile(
    r"(?:[€$£]\s?\d(?:[\d.,]*\d)?)"
    r"|(?:\d(?:[\d.,]*\d)?\s?(?:€|\$|£|EUR\b))"
)

_KEY_VALUE = re.compile(r"^\s*([^:]{2,40}):\s*(.+?)\s*$")

IN_STOCK_MARKERS = ("InStock", "PreOrder", "InStoreOnly", "LimitedAvailability", "OnlineOnly")


def clean_text(value: Optional[str]) -> Optional[str]:
    """Collapse whitespace; empty strings become None."""
    if value is None:
        return None
    text = _WS.sub(" ", str(value)).strip()
    return text or None


def truncate(text: Optional[str], limit: int = DESCRIPTION_LIMIT) -> Optional[str]:
    if not text:
        return text
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def element_text(el: Optional[Tag]) -> Optional[str]:
    if el is None:
        return None
    return clean_text(el.get_text(" ", strip=True))


def meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    """Content of ``<meta property=name>`` or ``<meta name=name>``."""
    el = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
    if el is None:
        return None
    return clean_text(el.get("content"))


def safe_select(soup: BeautifulSoup, selector: str) -> List[Tag]:
    try:
        return soup.select(selector)
    except Exception:
        # soupsieve rejects a few selector forms browsers accept
        logger.debug("selector_unsupported", selector=selector)
        return []


def select_first(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[Tag]:
    for selector in selectors:
        found = safe_select(soup, selector)
        if found:
            return found[0]
    return None


def select_text(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
    """Text of the first selector that yields a non-empty element."""
    for selector in selectors:
        for el in safe_select(soup, selector):
            text = element_text(el)
            if text:
                return text
    return None


def select_attr(
    soup: BeautifulSoup,
    selectors: Iterable[str],
    attrs: Iterable[str] = ("src", "data-src", "data-old-hires", "content", "href"),
) -> Optional[str]:
    """First non-empty attribute value among the matched elements."""
    attrs = tuple(attrs)
    for selector in selectors:
        for el in safe_select(soup, selector):
            for attr in attrs:
                value = clean_text(el.get(attr))
                if value:
                    return value
    return None


def is_struck(el: Tag) -> bool:
    """True when the element sits inside a struck-through or original-price wrapper."""
    node: Optional[Tag] = el
    while node is not None and isinstance(node, Tag):
        if node.name in _STRUCK_TAGS:
            return True
        if node.get("data-a-strike") == "true":
            return True
        classes = " ".join(node.get("class") or []).lower()
        testid = (node.get("data-testid") or "").lower()
        if any(hint in classes or hint in testid for hint in _STRUCK_CLASS_HINTS):
            return True
        node = node.parent
    return False


def select_price(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
    """Raw price text from the first matching element that is not a struck original.

    ``content`` attributes win over text for ``itemprop="price"`` style metas.
    """
    for selector in selectors:
        for el in safe_select(soup, selector):
            if is_struck(el):
                continue
            raw = clean_text(el.get("content")) or element_text(el)
            if raw and any(ch.isdigit() for ch in raw):
                return raw
    return None


def scan_text_for_price(text: Optional[str]) -> Optional[str]:
    """Last resort: first currency-adjacent number in rendered text."""
    if not text:
        return None
    match = _TEXT_PRICE.search(text)
    return match.group(0).strip() if match else None


def is_disabled(el: Tag) -> bool:
    classes = el.get("class") or []
    return (
        el.has_attr("disabled")
        or "disabled" in classes
        or (el.get("aria-disabled") or "").lower() == "true"
    )


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------


def _is_product(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    kind = node.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _walk_ld(node: Any):
    if isinstance(node, list):
        for item in node:
            yield from _walk_ld(item)
    elif isinstance(node, dict):
        yield node
        if "@graph" in node:
            yield from _walk_ld(node["@graph"])


def find_product_ld(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """First ``Product``-typed JSON-LD block on the page."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        payload = script.string or script.get_text()
        if not payload:
            continue
        try:
            data = json.loads(payload)
        except (ValueError, TypeError):
            continue
        for node in _walk_ld(data):
            if _is_product(node):
                return node
    return None


def ld_offer(product: Dict[str, Any]) -> Dict[str, Any]:
    offers = product.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if not isinstance(offers, dict):
        return {}
    # AggregateOffer nests the concrete offers
    if "price" not in offers and isinstance(offers.get("offers"), list) and offers["offers"]:
        nested = offers["offers"][0]
        if isinstance(nested, dict):
            return nested
    return offers


def ld_image(product: Dict[str, Any]) -> Optional[str]:
    image = product.get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url") or image.get("contentUrl")
    return clean_text(image) if isinstance(image, str) else None


def ld_availability(product: Dict[str, Any]) -> Optional[bool]:
    """True for InStock/PreOrder style offers, False for other states, None when absent."""
    availability = ld_offer(product).get("availability")
    if not availability:
        return None
    return any(marker in str(availability) for marker in IN_STOCK_MARKERS)


def ld_fields(product: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Flatten a Product block into the result's field names."""
    if not product:
        return {}
    offer = ld_offer(product)
    price = offer.get("price", offer.get("lowPrice"))
    brand = product.get("brand")
    if isinstance(brand, dict):
        brand = brand.get("name")
    return {
        "title": clean_text(product.get("name")),
        "image_url": ld_image(product),
        "description": clean_text(product.get("description")),
        "price": clean_text(str(price)) if price not in (None, "") else None,
        "currency": clean_text(offer.get("priceCurrency")),
        "available": ld_availability(product),
        "brand": clean_text(brand) if isinstance(brand, str) else None,
    }


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


def _keep_feature(text: Optional[str], features: List[str]) -> None:
    if text and 2 < len(text) < FEATURE_MAX_LEN and text not in features and len(features) < FEATURE_LIMIT:
        features.append(text)


def spec_table(soup: BeautifulSoup, row_selectors: Iterable[str]) -> List[str]:
    """``"Label: Value"`` pairs from specification tables or definition lists."""
    features: List[str] = []
    for selector in row_selectors:
        for row in safe_select(soup, selector):
            label = row.select_one("th, dt, .spec-label, .label") or row.select_one("td")
            cells = row.find_all(["td", "dd"])
            value = row.select_one(".spec-value, .value, td.data") or (cells[-1] if cells else None)
            if label is None or value is None or label is value:
                continue
            label_text, value_text = element_text(label), element_text(value)
            if label_text and value_text:
                _keep_feature(f"{label_text}: {value_text}", features)
        if features:
            break
    return features


def bullet_list(soup: BeautifulSoup, selectors: Iterable[str]) -> List[str]:
    features: List[str] = []
    for selector in selectors:
        for el in safe_select(soup, selector):
            _keep_feature(element_text(el), features)
        if features:
            break
    return features


def features_under_heading(soup: BeautifulSoup) -> List[str]:
    """List items that follow a "Features" / "Details" / "Specifications" heading."""
    for heading in soup.find_all(["h2", "h3", "h4", "h5", "strong"]):
        if not _FEATURE_HEADING.search(heading.get_text(" ", strip=True)):
            continue
        target = heading.find_next(["ul", "ol"])
        if target is None:
            continue
        features: List[str] = []
        for li in target.find_all("li"):
            _keep_feature(element_text(li), features)
        if features:
            return features
    return []


def features_from_sentence(description: Optional[str]) -> List[str]:
    """Split ``"Key: Value, Key: Value."`` style short descriptions into features."""
    if not description or len(description) > DESCRIPTION_LIMIT or ":" not in description:
        return []
    features: List[str] = []
    for chunk in re.split(r"[,;\n]|\.\s|\.$", description):
        match = _KEY_VALUE.match(chunk)
        if match:
            _keep_feature(f"{match.group(1).strip()}: {match.group(2).strip()}", features)
    return features if len(features) >= 2 else []
