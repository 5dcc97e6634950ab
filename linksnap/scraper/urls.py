"""URL helpers shared by the classifier, extractor and orchestrator."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse

from linksnap.scraper.models import InvalidURLError


def parse_url(url: str) -> str:
    """Return *url* stripped, or raise :class:`InvalidURLError`.

    Only absolute ``http``/``https`` URLs with a host are accepted.
    """
    if not isinstance(url, str):
        raise InvalidURLError(f"URL must be a string, got {type(url).__name__}")
    candidate = url.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        raise InvalidURLError(f"Not a valid URL: {url!r}")
    try:
        parsed = urlparse(candidate)
        # Accessing .port validates the netloc (raises on e.g. "host:abc").
        parsed.port
    except ValueError as exc:
        raise InvalidURLError(f"Not a valid URL: {url!r}") from exc
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
        raise InvalidURLError(f"Not a valid URL: {url!r}")
    return candidate


def hostname(url: str) -> str:
    """Lower-cased host of *url* without a leading ``www.``."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def host_matches(host: str, domains: frozenset[str] | tuple[str, ...]) -> bool:
    """Whether *host* belongs to one of *domains*.

    ``"x.com"`` matches ``x.com`` and ``mobile.x.com`` but not ``box.com``.
    Entries ending in a dot (``"amazon."``) match that label under any TLD.
    """
    dotted = "." + host
    for domain in domains:
        if domain.endswith("."):
            if ("." + domain) in dotted + ".":
                return True
        elif host == domain or host.endswith("." + domain):
            return True
    return False


def normalize_url(value: Optional[str], base_url: str) -> Optional[str]:
    """Resolve *value* against *base_url*.

    Protocol-relative URLs become ``https:``; data URIs are returned as-is;
    anything that does not resolve to an http(s) URL yields ``None``.
    """
    if not value or not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if candidate.lower().startswith("data:"):
        return candidate
    if candidate.startswith("//"):
        candidate = "https:" + candidate
    try:
        resolved = urljoin(base_url, candidate)
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return resolved


def default_favicon(url: str) -> str:
    return urljoin(url, "/favicon.ico")


def title_from_url(url: str) -> str:
    """Humanize the last path segment of *url*, falling back to its host.

    ``https://blog.example.com/posts/my-first_post`` → ``"My First Post"``.
    """
    parsed = urlparse(url)
    segments = [s for s in parsed.path.split("/") if s]
    if segments:
        last = unquote(segments[-1])
        last = re.sub(r"\.(html?|php|aspx?)$", "", last, flags=re.IGNORECASE)
        words = re.sub(r"[-_+]+", " ", last).strip()
        # Drop trailing numeric ids ("my-post-1234").
        words = re.sub(r"\s\d+$", "", words).strip()
        if words:
            return " ".join(w[:1].upper() + w[1:] for w in words.split())
    return parsed.hostname or url


def truncate(text: Optional[str], length: int) -> str:
    """Collapse whitespace and cut *text* to *length* chars, adding ``...``."""
    if not text:
        return ""
    cleaned = re.sub(r"\s+", " ", text).strip()
    if len(cleaned) > length:
        return cleaned[:length] + "..."
    return cleaned
