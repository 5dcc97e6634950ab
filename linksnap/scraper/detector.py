"""Block-page and JS-shell detection.

Two checks live here:

* :func:`is_blocked` inspects raw HTML and decides whether a fetch produced
  anything usable (anti-bot challenge pages and empty SPA shells are not).
* :func:`is_error_result` inspects the *extracted* title/description and
  catches error pages that slipped through with a valid-looking wrapper,
  e.g. a "Page Not Found" rendered client-side.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

# Phrases that show up on challenge / interstitial pages.
CHALLENGE_PHRASES = (
    "verify you are human",
    "checking your browser",
    "just a moment",
    "attention required",
    "captcha",
    "enable javascript",
    "javascript is disabled",
    "javascript is required",
    "please enable cookies",
    "security check",
    "challenge-platform",
    "cf-browser-verification",
    "are you a robot",
    "robot check",
    "access denied",
)

# Exact <title> values served by common challenge and error pages.
CHALLENGE_TITLES = frozenset({
    "just a moment...",
    "just a moment",
    "attention required",
    "attention required! | cloudflare",
    "security check",
    "access denied",
    "robot check",
    "are you a robot?",
    "403 forbidden",
    "404 not found",
    "page not found",
    "not found",
    "error",
})

# A challenge phrase on a page with this much visible text is incidental.
PHRASE_TEXT_THRESHOLD = 2000
MIN_HTML_LENGTH = 1000
MIN_BODY_TEXT = 50

X_SHELL_TITLES = frozenset({"x", "twitter", "x.com"})
X_SHELL_TEXT = 200

_OG_CORE_RE = re.compile(
    r"<meta[^>]+(?:property|name)\s*=\s*[\"']og:(?:title|description|image)[\"']",
    re.IGNORECASE,
)
_ERROR_RE = re.compile(
    r"page not found|\b404\b|access denied|403 forbidden"
    r"|verify you are human|checking your browser|just a moment|attention required",
    re.IGNORECASE,
)


def _visible_text(soup: BeautifulSoup) -> str:
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    container = soup.body or soup
    return re.sub(r"\s+", " ", container.get_text(separator=" ")).strip()


def _normalize_title(title: str) -> str:
    return title.replace("…", "...").strip().lower()


def _page_title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return _normalize_title(tag.get_text(strip=True)) if tag else ""


def _has_recognized_meta(soup: BeautifulSoup) -> bool:
    def _social(value: str | None) -> bool:
        return bool(value) and value.lower().startswith(("og:", "twitter:"))

    return (
        soup.find("meta", attrs={"property": _social}) is not None
        or soup.find("meta", attrs={"name": _social}) is not None
        or soup.find("meta", attrs={"name": "description"}) is not None
    )


def is_blocked(html: str | None) -> bool:
    """Return ``True`` if *html* is a challenge page, an error stub or a JS shell."""
    if not html or not html.strip():
        return True

    # Any OpenGraph core tag means there is useful data to extract.
    if _OG_CORE_RE.search(html):
        return False

    lower = html.lower()
    soup = BeautifulSoup(html, "html.parser")
    title = _page_title(soup)
    text = _visible_text(soup)

    if any(phrase in lower for phrase in CHALLENGE_PHRASES):
        if title in CHALLENGE_TITLES or len(text) < PHRASE_TEXT_THRESHOLD:
            return True

    if len(html) < MIN_HTML_LENGTH and "<!doctype" not in lower:
        return True

    # Twitter/X serves a bare shell titled after the site to logged-out clients.
    if title in X_SHELL_TITLES and len(text) < X_SHELL_TEXT:
        return True

    if len(text) < MIN_BODY_TEXT and not _has_recognized_meta(soup):
        return True

    return False


def is_block_title(title: str | None) -> bool:
    return bool(title) and _normalize_title(title) in CHALLENGE_TITLES


def is_error_result(title: str | None, description: str | None = None) -> bool:
    """Return ``True`` if an extracted title/description describes an error page."""
    if is_block_title(title):
        return True
    for value in (title, description):
        if value and _ERROR_RE.search(value):
            return True
    return False
