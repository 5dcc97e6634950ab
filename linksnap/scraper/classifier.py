"""Coarse content-type classification from a URL and (optionally) its HTML.

:func:`classify` is total: it never raises, whatever it is given.  It is run
once before fetching (URL only) and again after fetching, when page meta
tags and structured data can refine the answer.
"""

from __future__ import annotations

from typing import Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from linksnap.scraper.models import ContentType
from linksnap.scraper.structured import json_ld_items, product_offer
from linksnap.scraper.urls import host_matches

# ---------------------------------------------------------------------------
# Host and path tables
# ---------------------------------------------------------------------------
VIDEO_HOSTS = frozenset({
    "youtube.com", "youtu.be", "vimeo.com", "tiktok.com", "twitch.tv",
    "dailymotion.com",
})
SOCIAL_HOSTS = frozenset({
    "twitter.com", "x.com", "instagram.com", "facebook.com", "fb.com",
    "linkedin.com", "reddit.com", "threads.net", "pinterest.com",
    "bsky.app", "mastodon.social",
})
CODE_HOSTS = frozenset({
    "github.com", "gitlab.com", "bitbucket.org", "codepen.io",
    "codesandbox.io", "stackoverflow.com", "replit.com", "jsfiddle.net",
})
MARKETPLACE_HOSTS = frozenset({
    "amazon.", "ebay.", "flipkart.", "aliexpress.", "etsy.com", "walmart.com",
})
BLOG_HOSTS = frozenset({
    "medium.com", "substack.com", "dev.to", "hashnode.dev", "wordpress.com",
    "blogspot.com", "ghost.io",
})

# Hosts that serve JS shells to plain HTTP clients; rendering fetch goes first.
RENDER_FIRST_HOSTS = frozenset({
    "twitter.com", "x.com", "instagram.com", "facebook.com", "fb.com",
    "linkedin.com", "tiktok.com", "reddit.com", "medium.com", "threads.net",
})

_PRODUCT_SEGMENTS = ("/product/", "/p/", "/dp/", "/item/")
_ARTICLE_SEGMENTS = ("/blog/", "/article/", "/post/", "/posts/", "/news/")
_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".bmp", ".svg")
_PRICE_META = ("product:price:amount", "og:price:amount")

HtmlInput = Union[str, BeautifulSoup, None]


def _split(url: str) -> tuple[str, str]:
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return "", ""
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host, (parsed.path or "/").lower()


def _soup(html: HtmlInput) -> Optional[BeautifulSoup]:
    if html is None:
        return None
    if isinstance(html, BeautifulSoup):
        return html
    if not html.strip():
        return None
    return BeautifulSoup(html, "html.parser")


def _og_type(soup: BeautifulSoup) -> str:
    tag = soup.find("meta", attrs={"property": "og:type"})
    return (tag.get("content") or "").strip().lower() if tag else ""


def _has_video_meta(soup: BeautifulSoup) -> bool:
    return soup.find(
        "meta", attrs={"property": lambda p: bool(p) and p.lower().startswith("og:video")}
    ) is not None


def _has_price_signal(soup: BeautifulSoup) -> bool:
    for prop in _PRICE_META:
        if soup.find("meta", attrs={"property": prop}):
            return True
    if soup.find("meta", attrs={"name": "price"}):
        return True
    price, _ = product_offer(json_ld_items(soup))
    return price is not None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def requires_rendering(url: str, extra_hosts: frozenset[str] = frozenset()) -> bool:
    """Return ``True`` if *url*'s host is known to need JavaScript rendering."""
    host, _ = _split(url)
    if not host:
        return False
    return host_matches(host, RENDER_FIRST_HOSTS | extra_hosts)


def classify(url: str, html: HtmlInput = None) -> ContentType:
    """Map *url* (and optionally its HTML) to a :class:`ContentType`.

    Rules are evaluated in order; the first match wins.
    """
    host, path = _split(url)
    soup = _soup(html)
    og_type = _og_type(soup) if soup is not None else ""

    if path.endswith(".pdf"):
        return ContentType.PDF

    if path.endswith(_IMAGE_EXTENSIONS):
        return ContentType.IMAGE

    if (
        host_matches(host, VIDEO_HOSTS)
        or (host_matches(host, frozenset({"imdb.com"})) and path.startswith("/title/"))
        or "video" in og_type
        or (soup is not None and _has_video_meta(soup))
    ):
        return ContentType.VIDEO

    if host_matches(host, SOCIAL_HOSTS):
        return ContentType.SOCIAL

    if host_matches(host, CODE_HOSTS):
        return ContentType.CODE

    if (
        any(seg in path for seg in _PRODUCT_SEGMENTS)
        or host_matches(host, MARKETPLACE_HOSTS)
        or og_type == "product"
        or (soup is not None and _has_price_signal(soup))
    ):
        return ContentType.PRODUCT

    if (
        any(seg in path for seg in _ARTICLE_SEGMENTS)
        or host_matches(host, BLOG_HOSTS)
        or og_type == "article"
    ):
        return ContentType.ARTICLE

    return ContentType.WEBSITE
