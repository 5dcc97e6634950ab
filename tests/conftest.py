"""Shared fixtures: canned pages and an in-memory fetch strategy."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from linksnap.scraper.fetcher import FetchStrategy
from linksnap.scraper.models import FailureReason, FetchMethod, FetchResult, MetadataPayload


ARTICLE_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Fallback Title | Example Blog</title>
  <meta property="og:title" content="How Batteries Store Energy">
  <meta property="og:description" content="A short tour of lithium-ion chemistry, from anodes to electrolytes, for curious readers who want the details.">
  <meta property="og:image" content="https://cdn.example.com/images/battery-hero.jpg">
  <meta property="og:type" content="article">
  <meta property="og:site_name" content="Example Blog">
  <meta name="author" content="Ada Writer">
  <meta property="article:published_time" content="2024-03-01T09:00:00Z">
  <link rel="icon" href="/static/favicon.png">
  <link rel="canonical" href="https://example.com/blog/batteries">
</head>
<body>
  <nav><a href="/">Home</a></nav>
  <article>
    <h1>How Batteries Store Energy</h1>
    <p>Lithium-ion batteries move lithium ions between two electrodes. During charging the ions travel to the anode and are stored between layers of graphite.</p>
    <p>During discharge the ions flow back to the cathode, and electrons travel through the external circuit, which is what powers your phone or laptop.</p>
    <p>The electrolyte is the medium that lets ions move while keeping electrons out, and the separator keeps the electrodes from touching.</p>
  </article>
  <footer>Copyright Example Blog</footer>
</body>
</html>
"""

PRODUCT_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Trail Runner Shoe</title>
  <meta property="og:title" content="Trail Runner Shoe">
  <meta property="og:type" content="product">
  <meta property="og:description" content="Lightweight trail shoe with a grippy outsole.">
  <meta property="product:price:amount" content="49.99">
</head>
<body>
  <main>
    <h1>Trail Runner Shoe</h1>
    <p class="price">$49.99</p>
    <button>Add to cart</button>
  </main>
</body>
</html>
"""

CHALLENGE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Just a moment...</title></head>
<body>
  <p>Checking your browser before accessing the site.</p>
  <script src="/cdn-cgi/challenge-platform/h/b/orchestrate/jsch/v1"></script>
</body>
</html>
"""

NOT_FOUND_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Page Not Found</title>
  <meta property="og:title" content="Page Not Found">
  <meta property="og:description" content="The page you requested could not be found.">
</head>
<body><p>Sorry, we could not find that page. Try the search box above or go home.</p></body>
</html>
"""


@pytest.fixture()
def article_html() -> str:
    return ARTICLE_HTML


@pytest.fixture()
def product_html() -> str:
    return PRODUCT_HTML


@pytest.fixture()
def challenge_html() -> str:
    return CHALLENGE_HTML


@pytest.fixture()
def not_found_html() -> str:
    return NOT_FOUND_HTML


class StubFetcher(FetchStrategy):
    """Strategy that returns a canned result and records every call."""

    def __init__(
        self,
        method: FetchMethod,
        result: Optional[FetchResult] = None,
        *,
        timeout: float = 5.0,
        delay: float = 0.0,
        raises: Optional[BaseException] = None,
    ) -> None:
        self.method = method
        self.timeout = timeout
        self.result = result
        self.delay = delay
        self.raises = raises
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        if self.result is None:
            return self._fail(FailureReason.NETWORK, "stubbed failure")
        return self.result


@pytest.fixture()
def stub():
    """Factory for :class:`StubFetcher` instances."""
    return StubFetcher


@pytest.fixture()
def html_result():
    def _make(html: str, method: FetchMethod = FetchMethod.DIRECT) -> FetchResult:
        return FetchResult(method=method, html=html)

    return _make


@pytest.fixture()
def metadata_result():
    def _make(**fields: str) -> FetchResult:
        return FetchResult(method=FetchMethod.METADATA, metadata=MetadataPayload(**fields))

    return _make
