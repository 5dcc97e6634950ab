"""Field extraction: turns fetched HTML into a :class:`ScrapedRecord`.

Every field has its own waterfall of sources.  A waterfall is a tuple of
small pure functions ``Page -> Optional[T]``; :func:`_first` walks it and
returns the first non-empty answer.  Author-declared data (OpenGraph,
Twitter cards, JSON-LD) always beats DOM heuristics.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

import trafilatura
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from linksnap.config import settings
from linksnap.scraper.classifier import classify
from linksnap.scraper.detector import is_block_title
from linksnap.scraper.images import best_dom_image, is_valid_image_url
from linksnap.scraper.models import ContentType, FetchMethod, RecordMeta, ScrapedRecord
from linksnap.scraper.structured import first_string, json_ld_items, product_offer
from linksnap.scraper.urls import default_favicon, normalize_url, title_from_url, truncate

WORDS_PER_MINUTE = 200
TITLE_MAX = 200
DESCRIPTION_MAX = 500
ARTICLE_BODY_SNIPPET = 200
MIN_USEFUL_DESCRIPTION = 80
BODY_FALLBACK_MAX = 5000

_NON_CONTENT_TAGS = [
    "script", "style", "noscript", "template", "nav", "footer", "header",
    "aside", "form", "iframe", "svg", "button",
]
_AD_SELECTORS = ".ad, .ads, .advert, .advertisement, .sponsored, [id^='ad-'], [class*='cookie']"
_INVISIBLE_PARENTS = {"script", "style", "noscript", "template", "head", "title"}

_PRICE_RE = re.compile(r"([$₹£€]|Rs\.?)\s?(\d{1,3}(?:,\d{3})*(?:\.\d{2})?)", re.IGNORECASE)
_COMMERCE_RE = re.compile(r"\bbuy\b|add to cart", re.IGNORECASE)
_SYMBOL_CURRENCY = {"₹": "INR", "£": "GBP", "€": "EUR", "$": "USD"}


# ---------------------------------------------------------------------------
# Page wrapper
# ---------------------------------------------------------------------------

@dataclass
class Page:
    """Parsed HTML plus the things every extractor needs."""

    url: str
    html: str
    soup: BeautifulSoup
    structured: List[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def parse(cls, html: str, url: str) -> "Page":
        soup = BeautifulSoup(html or "", "html.parser")
        return cls(url=url, html=html or "", soup=soup, structured=json_ld_items(soup))

    def meta(self, *keys: str) -> Optional[str]:
        """Content of the first ``<meta property|name=key>`` found, in key order."""
        for key in keys:
            for attr in ("property", "name", "itemprop"):
                tag = self.soup.find("meta", attrs={attr: key})
                if tag is not None:
                    value = (tag.get("content") or "").strip()
                    if value:
                        return value
        return None

    def links(self, rel: str) -> List[Tag]:
        """``<link>`` tags whose full ``rel`` value equals *rel* (case-insensitive)."""
        found = []
        for tag in self.soup.find_all("link"):
            value = tag.get("rel") or []
            if isinstance(value, str):
                value = value.split()
            if " ".join(value).lower() == rel:
                found.append(tag)
        return found

    def structured_value(self, *keys: str) -> Optional[str]:
        for item in self.structured:
            for key in keys:
                value = first_string(item.get(key))
                if value:
                    return value
        return None


Extractor = Callable[[Page], Optional[str]]


def _first(page: Page, chain: Iterable[Extractor]) -> Optional[str]:
    for step in chain:
        value = step(page)
        if value:
            return value
    return None


def _visible_text(node: Tag | BeautifulSoup | None) -> str:
    """Text of *node* without script/style contents, whitespace collapsed."""
    if node is None:
        return ""
    parts = []
    for text in node.find_all(string=True):
        if isinstance(text, PreformattedString) or not isinstance(text, NavigableString):
            continue
        if text.parent is not None and text.parent.name in _INVISIBLE_PARENTS:
            continue
        parts.append(str(text))
    return re.sub(r"\s+", " ", " ".join(parts)).strip()


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

def _og_title(page: Page) -> Optional[str]:
    return page.meta("og:title")


def _twitter_title(page: Page) -> Optional[str]:
    return page.meta("twitter:title")


def _title_tag(page: Page) -> Optional[str]:
    tag = page.soup.find("title")
    return tag.get_text(strip=True) if tag else None


def _structured_title(page: Page) -> Optional[str]:
    return page.structured_value("name", "headline")


TITLE_CHAIN: tuple[Extractor, ...] = (_og_title, _twitter_title, _title_tag, _structured_title)


def extract_title(page: Page) -> str:
    """Return a non-empty title; challenge-page titles are never used."""
    for step in TITLE_CHAIN:
        value = truncate(step(page), TITLE_MAX)
        if value and not is_block_title(value):
            return value
    return truncate(title_from_url(page.url), TITLE_MAX)


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------

def _og_description(page: Page) -> Optional[str]:
    return page.meta("og:description")


def _twitter_description(page: Page) -> Optional[str]:
    return page.meta("twitter:description")


def _meta_description(page: Page) -> Optional[str]:
    return page.meta("description")


def _structured_description(page: Page) -> Optional[str]:
    for item in page.structured:
        description = first_string(item.get("description"))
        if description:
            return description
        body = first_string(item.get("articleBody"))
        if body:
            return body[:ARTICLE_BODY_SNIPPET]
    return None


DESCRIPTION_CHAIN: tuple[Extractor, ...] = (
    _og_description,
    _twitter_description,
    _meta_description,
    _structured_description,
)


def extract_description(page: Page) -> str:
    return truncate(_first(page, DESCRIPTION_CHAIN), DESCRIPTION_MAX)


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

def _declared(page: Page, value: Optional[str]) -> Optional[str]:
    url = normalize_url(value, page.url)
    return url if is_valid_image_url(url) else None


def _og_image(page: Page) -> Optional[str]:
    for key in ("og:image", "og:image:url", "og:image:secure_url"):
        url = _declared(page, page.meta(key))
        if url:
            return url
    return None


def _twitter_image(page: Page) -> Optional[str]:
    for key in ("twitter:image", "twitter:image:src"):
        url = _declared(page, page.meta(key))
        if url:
            return url
    return None


def _link_image_src(page: Page) -> Optional[str]:
    for tag in page.links("image_src"):
        url = _declared(page, tag.get("href"))
        if url:
            return url
    return None


def _structured_image(page: Page) -> Optional[str]:
    for item in page.structured:
        for key in ("image", "thumbnailUrl"):
            url = _declared(page, first_string(item.get(key)))
            if url:
                return url
    return None


def _dom_image(page: Page) -> Optional[str]:
    return best_dom_image(page.soup, page.url)


IMAGE_CHAIN: tuple[Extractor, ...] = (
    _og_image,
    _twitter_image,
    _link_image_src,
    _structured_image,
    _dom_image,
)


def extract_image(page: Page) -> Optional[str]:
    return _first(page, IMAGE_CHAIN)


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

def looks_like_commerce_page(page: Page) -> bool:
    """Independent judgement that the page sells something.

    Gates the regex price scan so unrelated large numbers (a film's budget,
    say) are not mistaken for a price.
    """
    if (page.meta("og:type") or "").lower() == "product":
        return True
    if page.soup.select_one(".price") is not None:
        return True
    for control in page.soup.find_all(["button", "a"]):
        if _COMMERCE_RE.search(control.get_text(" ", strip=True)):
            return True
    for control in page.soup.find_all("input", attrs={"type": "submit"}):
        if _COMMERCE_RE.search(control.get("value") or ""):
            return True
    return False


def extract_price(page: Page) -> tuple[Optional[str], Optional[str]]:
    """Return ``(price, currency)``; both ``None`` when no price is found."""
    price = page.meta("product:price:amount", "og:price:amount")
    currency = page.meta("product:price:currency", "og:price:currency")
    if price:
        return price, currency or "USD"

    price, offer_currency = product_offer(page.structured)
    if price:
        return price, offer_currency or currency or "USD"

    if looks_like_commerce_page(page):
        match = _PRICE_RE.search(_visible_text(page.soup.body or page.soup))
        if match:
            symbol = match.group(1)
            code = "INR" if symbol.lower().startswith("rs") else _SYMBOL_CURRENCY.get(symbol, "USD")
            return match.group(2).replace(",", ""), code

    return None, None


# ---------------------------------------------------------------------------
# Favicon, canonical URL and plain meta fields
# ---------------------------------------------------------------------------

_FAVICON_RELS = ("icon", "shortcut icon", "apple-touch-icon", "mask-icon")


def extract_favicon(page: Page) -> str:
    for rel in _FAVICON_RELS:
        tags = page.links(rel)
        if tags:
            url = normalize_url(tags[-1].get("href"), page.url)
            if url:
                return url
    return default_favicon(page.url)


def extract_canonical(page: Page) -> str:
    for tag in page.links("canonical"):
        url = normalize_url(tag.get("href"), page.url)
        if url:
            return url
    return normalize_url(page.meta("og:url"), page.url) or page.url


def extract_video_url(page: Page, content_type: ContentType) -> Optional[str]:
    declared = page.meta("og:video", "og:video:url", "og:video:secure_url")
    url = normalize_url(declared, page.url)
    if url:
        return url
    return page.url if content_type is ContentType.VIDEO else None


def reading_time(text: str) -> Optional[int]:
    """Minutes to read *text* at 200 words per minute, or ``None`` if empty."""
    words = len(text.split())
    if not words:
        return None
    return math.ceil(words / WORDS_PER_MINUTE)


# ---------------------------------------------------------------------------
# Body content
# ---------------------------------------------------------------------------

def _paragraph_score(tag: Tag) -> int:
    return sum(len(p.get_text(" ", strip=True)) for p in tag.find_all("p"))


def _main_block(html: str) -> Optional[Tag]:
    """Strip page chrome and return the largest coherent content block."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    for tag in soup.select(_AD_SELECTORS):
        tag.decompose()

    candidates = soup.select("article, main, [role=main]")
    if not candidates:
        candidates = soup.find_all(["section", "div"])
    best = max(candidates, key=_paragraph_score, default=None)
    if best is None or _paragraph_score(best) == 0:
        return soup.body
    return best


def _body_fallback(html: str) -> str:
    """Plain body text, used when readability extraction yields nothing."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return _visible_text(soup.body or soup)[:BODY_FALLBACK_MAX]


def extract_body(html: str, url: str) -> tuple[str, str]:
    """Return ``(content_html, text_content)`` for the page's main content.

    Tries ``trafilatura`` first for the text; falls back to a BeautifulSoup
    body scrape when it returns nothing (highly dynamic or minimal pages).
    """
    text: str | None = trafilatura.extract(
        html,
        url=url,
        include_comments=False,
        include_links=False,
        include_images=False,
        include_tables=True,
    )
    if text:
        text = re.sub(r"\s+", " ", text).strip()
    else:
        text = _body_fallback(html)

    block = _main_block(html)
    content = str(block) if block is not None and _visible_text(block) else ""
    return content, text[: settings.max_text_length]


def _wants_body(content_type: ContentType, description: str) -> bool:
    return content_type is ContentType.ARTICLE or len(description) < MIN_USEFUL_DESCRIPTION


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def declared_title(page: Page) -> Optional[str]:
    """The title the page declares about itself, before any URL fallback.

    Used to reject challenge and error pages; :func:`extract_title` never
    returns such titles.
    """
    return truncate(_first(page, TITLE_CHAIN), TITLE_MAX) or None


def extract_page(
    page: Page,
    content_type: Optional[ContentType] = None,
    method: FetchMethod = FetchMethod.DIRECT,
) -> ScrapedRecord:
    """Build a :class:`ScrapedRecord` from an already parsed :class:`Page`.

    *content_type* is the pre-fetch classification; it is refined with the
    page's own meta data and only kept when the page says nothing more
    specific.
    """
    refined = classify(page.url, page.soup)
    if refined is ContentType.WEBSITE and content_type is not None:
        refined = content_type

    title = extract_title(page)
    description = extract_description(page)
    price, currency = extract_price(page)

    content, text_content = "", ""
    if _wants_body(refined, description):
        content, text_content = extract_body(page.html, page.url)

    meta = RecordMeta(
        site_name=page.meta("og:site_name"),
        favicon=extract_favicon(page),
        canonical_url=extract_canonical(page),
        price=price,
        currency=currency,
        author=page.meta("author", "article:author"),
        published_time=page.meta("article:published_time", "datePublished"),
        reading_time_minutes=reading_time(text_content),
        has_code=page.soup.find("pre") is not None,
        video_url=extract_video_url(page, refined),
    )

    return ScrapedRecord(
        url=page.url,
        title=title,
        description=description,
        content_type=refined,
        image=extract_image(page),
        content=content,
        text_content=text_content,
        meta=meta,
        method=method,
    )


def extract(
    html: str,
    url: str,
    content_type: Optional[ContentType] = None,
    method: FetchMethod = FetchMethod.DIRECT,
) -> ScrapedRecord:
    """Build a :class:`ScrapedRecord` from *html* fetched from *url*."""
    return extract_page(Page.parse(html, url), content_type, method)
