"""Tests for field extraction (title, description, image, price, body...).

Mocking strategy:
- ``trafilatura.extract`` is patched in the fallback test to simulate the case
  where readability extraction returns nothing.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from linksnap.scraper.extractor import (
    Page,
    declared_title,
    extract,
    extract_body,
    extract_canonical,
    extract_description,
    extract_favicon,
    extract_image,
    extract_price,
    extract_title,
    looks_like_commerce_page,
    reading_time,
)
from linksnap.scraper.models import ContentType, FetchMethod

_URL = "https://example.com/blog/batteries"


def _page(html: str, url: str = _URL) -> Page:
    return Page.parse(html, url)


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

class TestTitle:
    def test_og_title_wins_over_title_tag(self) -> None:
        page = _page(
            '<html><head><title>Y</title><meta property="og:title" content="X"></head></html>'
        )
        assert extract_title(page) == "X"

    def test_twitter_then_title_tag(self) -> None:
        page = _page('<head><title>Tag</title><meta name="twitter:title" content="Tw"></head>')
        assert extract_title(page) == "Tw"
        assert extract_title(_page("<head><title>  Tag  </title></head>")) == "Tag"

    def test_json_ld_headline(self) -> None:
        page = _page(
            '<script type="application/ld+json">{"@type": "Article", "headline": "From LD"}</script>'
        )
        assert extract_title(page) == "From LD"

    def test_falls_back_to_url(self) -> None:
        assert extract_title(_page("<html><body></body></html>")) == "Batteries"

    def test_block_title_replaced(self) -> None:
        page = _page("<head><title>Just a moment...</title></head>")
        assert extract_title(page) == "Batteries"
        assert declared_title(page) == "Just a moment..."

    def test_long_title_truncated(self) -> None:
        page = _page(f"<head><title>{'a' * 300}</title></head>")
        assert extract_title(page) == "a" * 200 + "..."


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------

class TestDescription:
    def test_order(self) -> None:
        page = _page(
            '<meta name="description" content="plain">'
            '<meta name="twitter:description" content="tw">'
        )
        assert extract_description(page) == "tw"

    def test_article_body_snippet(self) -> None:
        body = "word " * 100
        page = _page(
            '<script type="application/ld+json">'
            f'{{"@type": "Article", "articleBody": "{body}"}}'
            "</script>"
        )
        assert len(extract_description(page)) <= 200

    def test_missing_is_empty_string(self) -> None:
        assert extract_description(_page("<p>hi</p>")) == ""


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

class TestImage:
    def test_og_image_resolved(self) -> None:
        page = _page('<meta property="og:image" content="/img/hero.jpg">')
        assert extract_image(page) == "https://example.com/img/hero.jpg"

    def test_placeholder_og_image_and_nothing_else(self) -> None:
        page = _page(
            '<meta property="og:image" content="https://example.com/placeholder.png">'
            "<body><p>No pictures here.</p></body>"
        )
        assert extract_image(page) is None

    def test_placeholder_skipped_for_twitter_image(self) -> None:
        page = _page(
            '<meta property="og:image" content="https://example.com/placeholder.png">'
            '<meta name="twitter:image" content="https://example.com/real.jpg">'
        )
        assert extract_image(page) == "https://example.com/real.jpg"

    def test_link_image_src(self) -> None:
        page = _page('<link rel="image_src" href="https://example.com/linked.png">')
        assert extract_image(page) == "https://example.com/linked.png"

    def test_json_ld_image_object(self) -> None:
        page = _page(
            '<script type="application/ld+json">'
            '{"@type": "Article", "image": {"@type": "ImageObject", "url": "https://example.com/ld.jpg"}}'
            "</script>"
        )
        assert extract_image(page) == "https://example.com/ld.jpg"

    def test_dom_scan_last(self) -> None:
        page = _page('<article><img src="/body.jpg" width="640" height="480"></article>')
        assert extract_image(page) == "https://example.com/body.jpg"


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

class TestPrice:
    def test_meta_price_defaults_to_usd(self, product_html: str) -> None:
        assert extract_price(_page(product_html)) == ("49.99", "USD")

    def test_meta_currency(self) -> None:
        page = _page(
            '<meta property="product:price:amount" content="10">'
            '<meta property="product:price:currency" content="EUR">'
        )
        assert extract_price(page) == ("10", "EUR")

    def test_json_ld_offer(self) -> None:
        page = _page(
            '<script type="application/ld+json">'
            '{"@type": "Product", "offers": [{"price": 1299, "priceCurrency": "INR"}]}'
            "</script>"
        )
        assert extract_price(page) == ("1299", "INR")

    def test_regex_needs_commerce_signal(self) -> None:
        page = _page("<body><p>The film cost $200,000,000 to make.</p></body>")
        assert not looks_like_commerce_page(page)
        assert extract_price(page) == (None, None)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("₹1,499", ("1499", "INR")),
            ("Rs. 799", ("799", "INR")),
            ("£12.50", ("12.50", "GBP")),
            ("€9.99", ("9.99", "EUR")),
            ("$5", ("5", "USD")),
        ],
    )
    def test_regex_on_commerce_page(self, text: str, expected) -> None:
        page = _page(f"<body><span>{text}</span><button>Buy now</button></body>")
        assert extract_price(page) == expected

    def test_no_price(self) -> None:
        assert extract_price(_page("<p>hello</p>")) == (None, None)


# ---------------------------------------------------------------------------
# Favicon / canonical / reading time
# ---------------------------------------------------------------------------

class TestMetaFields:
    def test_favicon_declared(self, article_html: str) -> None:
        assert extract_favicon(_page(article_html)) == "https://example.com/static/favicon.png"

    def test_favicon_default(self) -> None:
        assert extract_favicon(_page("<p>x</p>")) == "https://example.com/favicon.ico"

    def test_favicon_last_declared_wins(self) -> None:
        page = _page('<link rel="icon" href="/a.png"><link rel="icon" href="/b.png">')
        assert extract_favicon(page) == "https://example.com/b.png"

    def test_canonical_link_then_og_url_then_page(self) -> None:
        assert extract_canonical(_page('<link rel="canonical" href="/c">')) == "https://example.com/c"
        assert extract_canonical(_page('<meta property="og:url" content="https://e.com/o">')) == "https://e.com/o"
        assert extract_canonical(_page("<p>x</p>")) == _URL

    def test_reading_time(self) -> None:
        assert reading_time(" ".join(["word"] * 400)) == 2
        assert reading_time(" ".join(["word"] * 401)) == 3
        assert reading_time("") is None


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------

class TestBody:
    def test_trafilatura_text_used(self, article_html: str) -> None:
        with patch("linksnap.scraper.extractor.trafilatura.extract", return_value="Main   text\n here"):
            content, text = extract_body(article_html, _URL)
        assert text == "Main text here"
        assert "<article>" in content
        assert "Copyright" not in content

    def test_falls_back_to_soup_when_trafilatura_empty(self, article_html: str) -> None:
        with patch("linksnap.scraper.extractor.trafilatura.extract", return_value=None):
            _, text = extract_body(article_html, _URL)
        assert "Lithium-ion batteries" in text
        assert "Copyright" not in text

    def test_text_capped(self, article_html: str) -> None:
        with patch("linksnap.scraper.extractor.trafilatura.extract", return_value="x" * 20000):
            _, text = extract_body(article_html, _URL)
        assert len(text) == 10000


# ---------------------------------------------------------------------------
# Full record
# ---------------------------------------------------------------------------

class TestExtract:
    def test_article_record(self, article_html: str) -> None:
        with patch("linksnap.scraper.extractor.trafilatura.extract", return_value="word " * 400):
            record = extract(article_html, _URL)

        assert record.title == "How Batteries Store Energy"
        assert record.content_type is ContentType.ARTICLE
        assert record.image == "https://cdn.example.com/images/battery-hero.jpg"
        assert record.description.startswith("A short tour")
        assert record.method is FetchMethod.DIRECT
        assert record.meta.site_name == "Example Blog"
        assert record.meta.author == "Ada Writer"
        assert record.meta.published_time == "2024-03-01T09:00:00Z"
        assert record.meta.canonical_url == "https://example.com/blog/batteries"
        assert record.meta.reading_time_minutes == 2
        assert record.meta.has_code is False

    def test_product_record(self, product_html: str) -> None:
        record = extract(product_html, "https://shop.example.com/trail-runner")
        assert record.content_type is ContentType.PRODUCT
        assert record.meta.price == "49.99"
        assert record.meta.currency == "USD"

    def test_body_skipped_for_well_described_non_article(self) -> None:
        description = "d" * 120
        html = (
            f'<head><meta property="og:description" content="{description}"></head>'
            "<body><p>Some body text that will not be extracted.</p></body>"
        )
        record = extract(html, "https://example.com/")
        assert record.content_type is ContentType.WEBSITE
        assert record.text_content == ""
        assert record.content == ""
        assert record.meta.reading_time_minutes is None

    def test_pre_fetch_type_kept_when_page_is_silent(self) -> None:
        record = extract("<p>x</p>", "https://example.com/", content_type=ContentType.SOCIAL)
        assert record.content_type is ContentType.SOCIAL

    def test_has_code(self) -> None:
        record = extract("<pre>print('hi')</pre>", "https://example.com/")
        assert record.meta.has_code is True

    def test_idempotent(self, article_html: str) -> None:
        assert extract(article_html, _URL) == extract(article_html, _URL)

    def test_summary_input(self, article_html: str) -> None:
        with patch("linksnap.scraper.extractor.trafilatura.extract", return_value="word " * 400):
            record = extract(article_html, _URL)
        summary = record.summary_input()
        assert summary is not None
        assert summary["title"] == record.title
        assert len(summary["text"]) == 600

    def test_to_dict_uses_plain_values(self, article_html: str) -> None:
        data = extract(article_html, _URL, method=FetchMethod.RENDERING).to_dict()
        assert data["content_type"] == "article"
        assert data["method"] == "rendering"
        assert data["meta"]["site_name"] == "Example Blog"
