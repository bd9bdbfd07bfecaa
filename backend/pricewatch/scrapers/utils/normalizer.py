"""Price and URL normalization.

Prices on European and US storefronts are written with either separator
as the decimal mark, so the parser infers the role of each separator from
its position rather than from the currency.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import unquote_plus, urlparse, urlunparse

import structlog

logger = structlog.get_logger(__name__)


_NON_PRICE_CHARS = re.compile(r"[^0-9.,]")

# Marketing parameters stripped from canonical URLs
TRACKING_PARAMS = frozenset({
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
})


def _resolve_single_separator(digits: str, sep: str) -> str:
    """Decide whether a lone separator kind is decimal or thousands grouping.

    Exactly one separator followed by at most two digits is a decimal mark;
    anything else (several separators, or a three-digit run) is grouping.
    """
    parts = digits.split(sep)
    if len(parts) == 2 and len(parts[1]) <= 2:
        return f"{parts[0]}.{parts[1]}"
    return digits.replace(sep, "")


def parse_price(raw: Any, currency_hint: Optional[str] = None) -> Decimal:
    """Convert a raw price string into a Decimal amount.

    Args:
        raw: Raw price text (e.g. "€ 1.234,56", "$1,234.56") or a number
            taken from structured metadata
        currency_hint: Currency reported alongside the price. Accepted for
            the contract but never changes the result.

    Returns:
        Parsed amount, or Decimal("0") when nothing usable is found

    Examples:
        >>> parse_price("1.234,56")
        Decimal('1234.56')
        >>> parse_price("1,234.56")
        Decimal('1234.56')
        >>> parse_price("1.000")
        Decimal('1000')
    """
    if raw is None:
        return Decimal("0")

    cleaned = _NON_PRICE_CHARS.sub("", str(raw))
    if not cleaned:
        return Decimal("0")

    has_dot = "." in cleaned
    has_comma = "," in cleaned

    if has_dot and has_comma:
        # Whichever separator appears last is the decimal mark
        if cleaned.rfind(",") > cleaned.rfind("."):
            normalized = cleaned.replace(".", "").replace(",", ".")
        else:
            normalized = cleaned.replace(",", "")
    elif has_dot:
        normalized = _resolve_single_separator(cleaned, ".")
    elif has_comma:
        normalized = _resolve_single_separator(cleaned, ",")
    else:
        normalized = cleaned

    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        logger.debug("price_unparsable", raw=str(raw), currency=currency_hint)
        return Decimal("0")

    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount


def is_tracking_param(name: str) -> bool:
    lowered = name.lower()
    return lowered.startswith("utm_") or lowered in TRACKING_PARAMS


def normalize_url(url: str) -> str:
    """Canonicalize a product URL.

    Lowercases scheme and host, drops the fragment and removes marketing
    tracking parameters. Path and the remaining query are kept verbatim.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL
    """
    if not url:
        return url

    parsed = urlparse(url)
    # Raw pairs keep the store's own encoding; only tracking names are dropped
    query = "&".join(
        pair for pair in parsed.query.split("&")
        if pair and not is_tracking_param(unquote_plus(pair.split("=", 1)[0]))
    )

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        parsed.path,
        parsed.params,
        query,
        "",
    ))
