"""Manual extraction runner for testing and debugging strategies.

Runs the full fetch pipeline (allow-list, identity rotation, challenge
detection, retries) against one or more product URLs and prints what
would be stored.

Usage:
    python scripts/scrape_url.py https://www.amazon.it/dp/B0XXXXXXX
    python scripts/scrape_url.py URL1 URL2 --attempts 1
    python scripts/scrape_url.py URL --json
    python scripts/scrape_url.py --list-stores
"""

import argparse
import asyncio
import json
import os
import sys
import time

# Add backend to path so we can import pricewatch modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from pricewatch.core.exceptions import PriceWatchException
from pricewatch.scrapers.fetcher import FetchOrchestrator
from pricewatch.scrapers.register_strategies import register_all_strategies
from pricewatch.scrapers.utils.browser_manager import BrowserManager
from pricewatch.scrapers.utils.normalizer import parse_price
from pricewatch.scrapers.validation import AllowListValidator


async def run(urls, attempts: int, as_json: bool, headed: bool) -> int:
    """Scrape each URL and print the result. Returns the number of failures."""
    registry = register_all_strategies()
    browser = BrowserManager(headless=not headed)
    # No database here: built-in stores plus EXTRA_ALLOWED_DOMAINS only
    fetcher = FetchOrchestrator(browser=browser, registry=registry, validator=AllowListValidator())

    failures = 0
    try:
        for url in urls:
            print(f"\n{'='*70}")
            print(f"  {url}")
            print(f"{'='*70}")
            start = time.monotonic()
            try:
                result = await fetcher.scrape(url, max_attempts=attempts)
            except PriceWatchException as e:
                failures += 1
                print(f"❌ Failed [{e.code}]: {e.message}")
                continue

            duration = time.monotonic() - start
            if as_json:
                print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))
                continue

            print(f"✅ Success ({duration:.2f}s, {result.diagnostics.attempts} attempt(s), strategy {result.diagnostics.strategy})")
            print(f"   Store:     {result.store}")
            print(f"   Title:     {(result.title[:60] + '...') if result.title else 'NULL'}")
            print(f"   Price:     {result.price!r} -> {parse_price(result.price, result.currency)}")
            print(f"   Currency:  {result.currency}")
            print(f"   Available: {result.available}")
            features = result.details.get("features") or []
            if features:
                print(f"   Features:  {len(features)}")
                for feature in features[:5]:
                    print(f"     - {feature}")
    finally:
        await browser.stop()

    return failures


def main():
    parser = argparse.ArgumentParser(description="Scrape product pages with the PriceWatch extraction engine")
    parser.add_argument("urls", nargs="*", help="Product page URLs")
    parser.add_argument("--attempts", type=int, default=None, help="Attempt budget per URL")
    parser.add_argument("--json", action="store_true", help="Print the raw record as JSON")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--list-stores", action="store_true", help="List hostname patterns with a dedicated strategy")

    args = parser.parse_args()

    if args.list_stores:
        print("\n📋 Dedicated strategies:")
        for pattern in register_all_strategies().get_registered_patterns():
            print(f"   - {pattern}")
        return

    if not args.urls:
        parser.error("at least one URL is required")

    failures = asyncio.run(run(args.urls, args.attempts, args.json, args.headed))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
