"""Hero-image validation and DOM scoring."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from linksnap.scraper.urls import normalize_url

# Substrings that mark placeholders, spacers and tracking pixels.
REJECT_PATTERNS = (
    "placeholder",
    "default-",
    "noimage",
    "no-image",
    "missing",
    "1x1",
    "spacer",
    "blank.gif",
    "transparent.gif",
    "/pixel.",
    "tracking",
)

# Image hosts whose URLs often lack a file extension.
KNOWN_IMAGE_CDNS = (
    "images.unsplash.com",
    "i.ytimg.com",
    "img.youtube.com",
    "pbs.twimg.com",
    "cdninstagram.com",
    "i.imgur.com",
    "media.giphy.com",
    "m.media-amazon.com",
    "rukminim",
    "flixcart.com",
    "opengraph.githubassets.com",
    "cdn.dribbble.com",
)

MIN_DATA_URI_LENGTH = 5000

_EXTENSION_RE = re.compile(r"\.(?:jpe?g|png|webp|gif|avif)(?:[?#]|$)", re.IGNORECASE)
_DATA_IMAGE_PREFIXES = ("data:image/jpeg", "data:image/jpg", "data:image/png", "data:image/webp")

# DOM scoring weights.
AREA_THRESHOLD = 5000
AREA_BONUS_CAP = 50000
MAIN_BONUS = 20000
CHROME_PENALTY = 10000
KEYWORD_BONUS = 15000
_HERO_KEYWORDS = ("hero", "feature", "cover")
_MAIN_CONTAINERS = ("article", "main")
_CHROME_CONTAINERS = ("header", "nav", "footer", "aside")


def _is_svg(lower: str) -> bool:
    path = lower.split("?", 1)[0].split("#", 1)[0]
    return path.endswith(".svg") or "image/svg+xml" in lower


def is_valid_image_url(url: Optional[str], strict: bool = False) -> bool:
    """Return ``True`` if *url* is usable as a hero image.

    Lenient mode (declared images from meta tags / JSON-LD) only rejects
    SVGs, small data URIs and placeholder or tracking patterns.  Strict mode
    (DOM-scanned ``<img>`` candidates) also requires an image extension or a
    known image CDN.
    """
    if not url:
        return False
    lower = url.lower()

    if lower.startswith("data:"):
        return lower.startswith(_DATA_IMAGE_PREFIXES) and len(url) > MIN_DATA_URI_LENGTH

    if not lower.startswith(("http://", "https://")):
        return False
    if _is_svg(lower):
        return False
    if any(pattern in lower for pattern in REJECT_PATTERNS):
        return False

    if strict:
        return bool(_EXTENSION_RE.search(url)) or any(cdn in lower for cdn in KNOWN_IMAGE_CDNS)
    return True


def _img_src(img: Tag) -> Optional[str]:
    for attr in ("src", "data-src", "data-lazy-src"):
        value = img.get(attr)
        if value and value.strip():
            return value.strip()
    srcset = img.get("srcset")
    if srcset and srcset.strip():
        return srcset.strip().split(",")[0].split()[0]
    return None


def _dimension(img: Tag, attr: str) -> int:
    match = re.match(r"\s*(\d+)", str(img.get(attr) or ""))
    return int(match.group(1)) if match else 0


def _inside(img: Tag, names: tuple[str, ...], role_main: bool = False) -> bool:
    for parent in img.parents:
        if parent.name in names:
            return True
        if role_main and parent.get("role") == "main":
            return True
    return False


def score_image(img: Tag) -> int:
    """Heuristic score for an ``<img>``; higher is more likely the hero image."""
    score = 0
    area = _dimension(img, "width") * _dimension(img, "height")
    if area > AREA_THRESHOLD:
        score += min(area, AREA_BONUS_CAP)
    if _inside(img, _MAIN_CONTAINERS, role_main=True):
        score += MAIN_BONUS
    if _inside(img, _CHROME_CONTAINERS):
        score -= CHROME_PENALTY

    classes = img.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    label = " ".join(classes).lower() + " " + str(img.get("alt") or "").lower()
    if any(keyword in label for keyword in _HERO_KEYWORDS):
        score += KEYWORD_BONUS
    return score


def best_dom_image(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    """Pick the highest-scoring valid ``<img>`` on the page.

    Only candidates scoring above zero are considered; ties keep the first
    one in document order.
    """
    best: Optional[str] = None
    best_score = 0
    for img in soup.find_all("img"):
        src = normalize_url(_img_src(img), base_url)
        if not is_valid_image_url(src, strict=True):
            continue
        score = score_image(img)
        if score > best_score:
            best_score = score
            best = src
    return best
