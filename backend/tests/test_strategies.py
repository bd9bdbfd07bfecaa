"""Tests for extraction strategies and the strategy registry."""

import json

import pytest
from bs4 import BeautifulSoup

from pricewatch.scrapers.base import ExtractionStrategy, PageSnapshot, RawExtractionResult
from pricewatch.scrapers.register_strategies import register_all_strategies
from pricewatch.scrapers.registry import StrategyRegistry
from pricewatch.scrapers.strategies import (
    AmazonStrategy,
    EbayStrategy,
    GenericStrategy,
    MediaWorldStrategy,
    ReworkLabsStrategy,
    SmartGenerationStrategy,
)
from pricewatch.scrapers.utils.extraction import features_from_sentence, select_price

from conftest import PRODUCT_HTML


AMAZON_URL = "https://www.amazon.it/dp/B0CHX1W1XY"

AMAZON_HTML = """
<html>
<head><title>Apple iPhone 15 (128 GB) - Nero : Amazon.it: Elettronica</title></head>
<body>
  <span id="productTitle">  Apple iPhone 15 (128 GB) - Nero  </span>
  <div id="corePrice_feature_div">
    <span class="a-price"><span class="a-offscreen">799,00 €</span></span>
  </div>
  <span class="a-price a-text-price" data-a-strike="true"><span class="a-offscreen">979,00 €</span></span>
  <img id="landingImage" src="data:image/gif;base64,R0lGOD"
       data-a-dynamic-image='{"https://m.media-amazon.com/images/I/big.jpg":[1500,1500],"https://m.media-amazon.com/images/I/small.jpg":[500,500]}'>
  <div id="feature-bullets"><ul>
    <li><span class="a-list-item">Display Super Retina XDR da 6,1 pollici</span></li>
    <li><span class="a-list-item">Fotocamera principale da 48MP</span></li>
  </ul></div>
  <div id="availability"><span>Disponibilità immediata.</span></div>
  <input id="add-to-cart-button" type="submit" value="Aggiungi al carrello">
</body>
</html>
"""


def page(html, url):
    return PageSnapshot.from_html(html, url)


class TestAmazonStrategy:

    def test_full_product_page(self):
        result = AmazonStrategy().extract(page(AMAZON_HTML, AMAZON_URL), AMAZON_URL)

        assert result.title == "Apple iPhone 15 (128 GB) - Nero"
        assert result.price == "799,00 €"
        assert result.image_url == "https://m.media-amazon.com/images/I/big.jpg"
        assert result.available is True
        assert result.store == "amazon"
        assert result.details["features"] == [
            "Display Super Retina XDR da 6,1 pollici",
            "Fotocamera principale da 48MP",
        ]
        # Short descriptions are replaced by the first bullets
        assert result.description.startswith("Display Super Retina XDR")

    def test_unavailable(self):
        html = """
        <html><head><title>Cover : Amazon.it</title></head><body>
          <span id="productTitle">Cover in silicone</span>
          <div id="availability"><span>Attualmente non disponibile.</span></div>
          <p>Altri venditori da 12,99 €</p>
        </body></html>
        """
        result = AmazonStrategy().extract(page(html, AMAZON_URL), AMAZON_URL)

        assert result.available is False
        assert result.price is None

    def test_document_title_suffix_removed(self):
        html = """
        <html><head><title>Apple iPhone 15 : Amazon.it: Elettronica</title></head>
        <body><span class="a-price"><span class="a-offscreen">799,00 €</span></span></body></html>
        """
        result = AmazonStrategy().extract(page(html, AMAZON_URL), AMAZON_URL)

        assert result.title == "Apple iPhone 15"
        assert result.price == "799,00 €"

    def test_missing_price_means_unavailable(self):
        html = "<html><head><title>x</title></head><body><span id='productTitle'>Thing</span></body></html>"
        result = AmazonStrategy().extract(page(html, AMAZON_URL), AMAZON_URL)

        assert result.price is None
        assert result.available is False


class TestItalianStoreStrategies:

    def test_smartgeneration_keeps_first_euro_amount(self):
        url = "https://www.smartgeneration.it/iphone-13-128gb"
        html = """
        <html><head><title>iPhone 13</title></head><body>
          <h1 class="page-title"><span>iPhone 13 128GB Ricondizionato</span></h1>
          <div class="price-box"><span class="price">A partire da 1.049,90 € IVA inclusa</span></div>
          <button id="product-addtocart-button">Aggiungi al Carrello</button>
        </body></html>
        """
        result = SmartGenerationStrategy().extract(page(html, url), url)

        assert result.title == "iPhone 13 128GB Ricondizionato"
        assert result.price == "1.049,90"
        assert result.available is True

    def test_reworklabs_sold_out_keeps_sale_price(self):
        url = "https://www.rework-labs.com/products/macbook-air-m1"
        html = """
        <html><head><title>MacBook Air M1</title></head><body>
          <h1 class="product-single__title">MacBook Air M1</h1>
          <div class="product-price">€1.099,00 €899,00</div>
          <button class="product-form__cart-submit" disabled>Esaurito</button>
        </body></html>
        """
        result = ReworkLabsStrategy().extract(page(html, url), url)

        assert result.price == "899,00"
        assert result.available is False

    def test_mediaworld_without_cart_button_is_unavailable(self):
        url = "https://www.mediaworld.it/it/product/_samsung-tv-123.html"
        html = """
        <html><head><title>Samsung TV</title></head><body>
          <h1 data-test="product-title">Samsung TV 55"</h1>
          <span data-test="product-price">499,99 €</span>
        </body></html>
        """
        result = MediaWorldStrategy().extract(page(html, url), url)

        assert result.title == 'Samsung TV 55"'
        assert result.price == "499,99 €"
        assert result.available is False

    def test_mediaworld_with_cart_button(self):
        url = "https://www.mediaworld.it/it/product/_samsung-tv-123.html"
        html = """
        <html><head><title>Samsung TV</title></head><body>
          <span data-test="product-price">499,99 €</span>
          <button data-test="add-to-cart-button">Aggiungi al carrello</button>
        </body></html>
        """
        result = MediaWorldStrategy().extract(page(html, url), url)

        assert result.available is True

    def test_structured_data_fills_missing_markup(self):
        url = "https://www.ebay.it/itm/1234567890"
        ld = {
            "@context": "https://schema.org",
            "@type": "Product",
            "name": "Nintendo Switch OLED",
            "brand": {"@type": "Brand", "name": "Nintendo"},
            "offers": {
                "@type": "Offer",
                "price": "249.00",
                "priceCurrency": "EUR",
                "availability": "https://schema.org/InStock",
            },
        }
        html = f"""
        <html><head><title>eBay</title>
        <script type="application/ld+json">{json.dumps(ld)}</script></head>
        <body><p>Spedizione gratuita</p></body></html>
        """
        result = EbayStrategy().extract(page(html, url), url)

        assert result.title == "Nintendo Switch OLED"
        assert result.price == "249.00"
        assert result.currency == "EUR"
        assert result.available is True
        assert result.details["brand"] == "Nintendo"


class TestGenericStrategy:

    def test_open_graph_metadata(self):
        url = "https://www.shop.example.com/p/iphone-15"
        result = GenericStrategy().extract(page(PRODUCT_HTML, url), url)

        assert result.title == "Apple iPhone 15 128GB Nero"
        assert result.image_url == "https://cdn.example.com/iphone.jpg"
        assert result.price == "799,00"
        assert result.currency == "EUR"
        assert result.store == "shop.example.com"
        assert result.available is True
        assert result.diagnostics.strategy == "generic"

    def test_json_ld_wins_over_document_title(self):
        url = "https://shop.example.com/p/widget"
        ld = {
            "@graph": [
                {"@type": "BreadcrumbList"},
                {
                    "@type": ["Product"],
                    "name": "Widget Pro",
                    "image": [{"url": "https://cdn.example.com/widget.png"}],
                    "offers": [{"price": 19.99, "priceCurrency": "USD", "availability": "https://schema.org/OutOfStock"}],
                },
            ]
        }
        html = f"""
        <html><head><title>Widget Pro | Example Shop</title>
        <script type="application/ld+json">{json.dumps(ld)}</script></head>
        <body></body></html>
        """
        result = GenericStrategy().extract(page(html, url), url)

        assert result.title == "Widget Pro"
        assert result.image_url == "https://cdn.example.com/widget.png"
        assert result.price == "19.99"
        assert result.currency == "USD"
        assert result.available is False

    def test_broken_json_ld_is_skipped(self):
        url = "https://shop.example.com/p/widget"
        html = """
        <html><head><title>Widget</title>
        <script type="application/ld+json">{not json</script></head>
        <body></body></html>
        """
        result = GenericStrategy().extract(page(html, url), url)

        assert result.title == "Widget"
        assert result.price is None

    def test_text_scan_as_last_resort(self):
        url = "https://shop.example.com/p/gadget"
        html = "<html><head><title>Gadget</title></head><body><p>Solo oggi a € 24,90 spedito</p></body></html>"
        result = GenericStrategy().extract(page(html, url), url)

        assert result.title == "Gadget"
        assert result.price == "€ 24,90"

    def test_long_description_truncated(self):
        url = "https://shop.example.com/p/long"
        html = f'<html><head><meta property="og:description" content="{"a" * 800}"></head><body></body></html>'
        result = GenericStrategy().extract(page(html, url), url)

        assert len(result.description) == 503
        assert result.description.endswith("...")


class TestExtractionHelpers:

    def test_select_price_skips_struck_original(self):
        soup = BeautifulSoup(
            '<div><del><span class="amount">€ 999,00</span></del><span class="amount">€ 849,00</span></div>',
            "html.parser",
        )
        assert select_price(soup, [".amount"]) == "€ 849,00"

    def test_select_price_prefers_content_attribute(self):
        soup = BeautifulSoup('<meta itemprop="price" content="12.50"><span itemprop="price">12,50 €</span>', "html.parser")
        assert select_price(soup, ["[itemprop='price']"]) == "12.50"

    def test_features_from_sentence(self):
        assert features_from_sentence("Colore: Nero, Memoria: 128GB.") == ["Colore: Nero", "Memoria: 128GB"]

    @pytest.mark.parametrize("description", [None, "", "Colore: Nero", "No pairs here, at all.", "Colore: Nero, " * 60])
    def test_features_from_sentence_needs_two_pairs(self, description):
        assert features_from_sentence(description) == []


class TestStrategyRegistry:

    def test_store_hostnames_resolve(self):
        registry = register_all_strategies(StrategyRegistry())

        assert isinstance(registry.for_domain("www.amazon.it"), AmazonStrategy)
        assert isinstance(registry.for_domain("www.amazon.co.uk"), AmazonStrategy)
        assert isinstance(registry.for_domain("www.rework-labs.com"), ReworkLabsStrategy)
        assert isinstance(registry.for_domain("WWW.MEDIAWORLD.IT"), MediaWorldStrategy)

    def test_instances_are_shared(self):
        registry = register_all_strategies(StrategyRegistry())
        assert registry.for_domain("www.amazon.it") is registry.for_domain("www.amazon.de")

    def test_unknown_hostname_gets_generic(self):
        registry = register_all_strategies(StrategyRegistry())

        assert isinstance(registry.for_domain("shop.example.com"), GenericStrategy)
        assert registry.has_strategy("shop.example.com") is False
        assert registry.has_strategy("www.ebay.it") is True

    def test_rejects_non_strategy(self):
        registry = StrategyRegistry()
        with pytest.raises(ValueError):
            registry.register_strategy("example.", dict)

    def test_duplicate_pattern_replaces(self):
        class CustomStrategy(ExtractionStrategy):
            name = "custom"

            def extract(self, page, url):
                return RawExtractionResult(store=self.name)

        registry = StrategyRegistry()
        registry.register_strategy("amazon.", AmazonStrategy)
        registry.register_strategy("amazon.", CustomStrategy)

        assert registry.get_registered_patterns() == ["amazon."]
        assert isinstance(registry.for_domain("www.amazon.it"), CustomStrategy)
