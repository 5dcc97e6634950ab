"""Fetch strategies: direct HTTP, JS rendering, and metadata fallback.

All strategies share one interface: ``await strategy.fetch(url)`` returns a
:class:`FetchResult`.  Ordinary network and HTTP failures are reported as a
tagged failure, never raised, so the orchestrator can escalate
deterministically.  ``asyncio.CancelledError`` is never caught here.

Strategies, cheapest first:
  1. :class:`DirectFetcher` — plain GET with browser-like headers.
  2. :class:`RenderingFetcher` — ScrapingAnt-style rendering/anti-bot API;
     :class:`PlaywrightRenderer` renders locally instead when
     ``RENDER_BACKEND=playwright``.
  3. :class:`MetadataFetcher` — Microlink-style metadata API; returns
     OpenGraph-like fields and a screenshot instead of HTML.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from linksnap.config import settings
from linksnap.scraper.detector import is_blocked
from linksnap.scraper.models import FailureReason, FetchMethod, FetchResult, MetadataPayload

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class FetchStrategy(ABC):
    """One way of getting a page.  Must return (not raise) on failure."""

    method: FetchMethod
    timeout: float

    @abstractmethod
    async def fetch(self, url: str) -> FetchResult:
        """Fetch *url* and return a :class:`FetchResult`."""

    def _fail(self, error: FailureReason, detail: str = "") -> FetchResult:
        return FetchResult.failure(self.method, error, detail)


def _status_failure(status: int) -> FailureReason:
    return FailureReason.SERVER_ERROR if status >= 500 else FailureReason.HTTP_ERROR


# ---------------------------------------------------------------------------
# Direct fetch
# ---------------------------------------------------------------------------

class DirectFetcher(FetchStrategy):
    """Plain GET with a realistic browser fingerprint; fastest, easily blocked."""

    method = FetchMethod.DIRECT

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None) -> None:
        self.timeout = timeout if timeout is not None else settings.direct_timeout
        self._headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
        }

    async def fetch(self, url: str) -> FetchResult:
        try:
            async with httpx.AsyncClient(
                headers=self._headers,
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as exc:
            return self._fail(FailureReason.TIMEOUT, str(exc) or "timed out")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._fail(FailureReason.NETWORK, str(exc))

        status = response.status_code
        if status in (401, 403):
            return self._fail(FailureReason.ACCESS_DENIED, f"HTTP {status}")
        if status == 429:
            return self._fail(FailureReason.BLOCKED, "HTTP 429")
        if status >= 500:
            return self._fail(FailureReason.SERVER_ERROR, f"HTTP {status}")

        content_type = response.headers.get("content-type", "").lower()
        if "html" not in content_type and "xml" not in content_type:
            return self._fail(FailureReason.NOT_HTML, content_type or "no content-type")

        html = response.text
        if is_blocked(html):
            return self._fail(FailureReason.BLOCKED, "anti-bot challenge or empty shell")
        return FetchResult(method=self.method, html=html)


# ---------------------------------------------------------------------------
# Rendering fetch
# ---------------------------------------------------------------------------

class RenderingFetcher(FetchStrategy):
    """Delegate to a hosted headless-browser / anti-bot service (ScrapingAnt API).

    Skipped (``not_configured``) when no API key is set.  401 and 403/429
    mean bad credentials or an exhausted quota and are not retryable.
    """

    method = FetchMethod.RENDERING

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = settings.scrapingant_api_key if api_key is None else api_key
        self.api_url = api_url or settings.rendering_api_url
        self.timeout = timeout if timeout is not None else settings.rendering_timeout

    async def fetch(self, url: str) -> FetchResult:
        if not self.api_key:
            logger.warning("rendering.not_configured", url=url)
            return self._fail(FailureReason.NOT_CONFIGURED, "no rendering API key")

        params = {
            "url": url,
            "x-api-key": self.api_key,
            "browser": "true",
            "return_page_source": "true",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.TimeoutException as exc:
            return self._fail(FailureReason.TIMEOUT, str(exc) or "timed out")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._fail(FailureReason.NETWORK, str(exc))

        status = response.status_code
        if status == 401:
            return self._fail(FailureReason.INVALID_CREDENTIALS, "invalid API key")
        if status in (403, 429):
            return self._fail(FailureReason.QUOTA_EXCEEDED, f"HTTP {status}")
        if not response.is_success:
            # Anything else from the service is treated as transient.
            return self._fail(FailureReason.SERVER_ERROR, f"HTTP {status}")

        try:
            data = response.json()
        except ValueError:
            return self._fail(FailureReason.EMPTY, "response is not JSON")
        html = data.get("content") if isinstance(data, dict) else None
        if not html or not isinstance(html, str):
            return self._fail(FailureReason.EMPTY, "no page content")
        if is_blocked(html):
            return self._fail(FailureReason.BLOCKED, "rendered page is still blocked")
        return FetchResult(method=self.method, html=html)


class PlaywrightRenderer(FetchStrategy):
    """Render *url* with a local headless Chromium.

    Playwright is imported lazily so the rest of the package (and the test
    suite) works without a browser installed.
    """

    method = FetchMethod.RENDERING

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None) -> None:
        self.timeout = timeout if timeout is not None else settings.rendering_timeout
        self.user_agent = user_agent or settings.user_agent

    async def fetch(self, url: str) -> FetchResult:
        from playwright.async_api import Error as PlaywrightError  # noqa: PLC0415
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError  # noqa: PLC0415
        from playwright.async_api import async_playwright  # noqa: PLC0415

        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(headless=True)
                try:
                    page = await browser.new_page(user_agent=self.user_agent)
                    await page.goto(
                        url,
                        timeout=int(self.timeout * 1000),
                        wait_until="networkidle",
                    )
                    html = await page.content()
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as exc:
            return self._fail(FailureReason.TIMEOUT, str(exc))
        except PlaywrightError as exc:
            return self._fail(FailureReason.NETWORK, str(exc))

        if is_blocked(html):
            return self._fail(FailureReason.BLOCKED, "rendered page is still blocked")
        return FetchResult(method=self.method, html=html)


def build_renderer() -> FetchStrategy:
    """Rendering strategy for the configured ``RENDER_BACKEND``."""
    if settings.render_backend == "playwright":
        return PlaywrightRenderer()
    return RenderingFetcher()


# ---------------------------------------------------------------------------
# Metadata fallback
# ---------------------------------------------------------------------------

def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _asset_url(value: Any) -> Optional[str]:
    """Microlink returns assets as ``{"url": ...}``; accept bare strings too."""
    if isinstance(value, dict):
        return _text(value.get("url"))
    return _text(value)


class MetadataFetcher(FetchStrategy):
    """Ask a Microlink-compatible API for a URL's metadata and a screenshot.

    The last strategy in the chain: no HTML comes back, only enough to build
    a sparse record (title, description, image).
    """

    method = FetchMethod.METADATA

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        screenshot: bool = True,
    ) -> None:
        self.api_url = api_url or settings.metadata_api_url
        self.api_key = settings.metadata_api_key if api_key is None else api_key
        self.timeout = timeout if timeout is not None else settings.metadata_timeout
        self.screenshot = screenshot

    async def fetch(self, url: str) -> FetchResult:
        params = {"url": url}
        if self.screenshot:
            params["screenshot"] = "true"
        headers = {"x-api-key": self.api_key} if self.api_key else {}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.api_url, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            return self._fail(FailureReason.TIMEOUT, str(exc) or "timed out")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._fail(FailureReason.NETWORK, str(exc))

        status = response.status_code
        if status in (401, 403):
            return self._fail(FailureReason.INVALID_CREDENTIALS, f"HTTP {status}")
        if status == 429:
            return self._fail(FailureReason.QUOTA_EXCEEDED, "HTTP 429")
        if not response.is_success:
            return self._fail(_status_failure(status), f"HTTP {status}")

        try:
            body = response.json()
        except ValueError:
            return self._fail(FailureReason.EMPTY, "response is not JSON")
        if not isinstance(body, dict) or body.get("status") != "success":
            return self._fail(FailureReason.EMPTY, "metadata service reported failure")

        data = body.get("data")
        if not isinstance(data, dict):
            data = {}
        payload = MetadataPayload(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            image=_asset_url(data.get("image")),
            screenshot_url=_asset_url(data.get("screenshot")),
            logo_url=_asset_url(data.get("logo")),
            author=_text(data.get("author")),
            publisher=_text(data.get("publisher")),
        )
        if not (payload.title or payload.description or payload.image or payload.screenshot_url):
            return self._fail(FailureReason.EMPTY, "no usable metadata")
        return FetchResult(method=self.method, metadata=payload)
