"""Ingestion orchestrator: escalate through fetch strategies, then extract.

Escalation is an explicit state machine.  :func:`next_strategy` is pure and
decides, from the last state and result, which strategy runs next::

    normal:        direct -> rendering -> metadata -> minimal record
    render-first:  rendering -> direct -> metadata -> minimal record

Each attempt runs under its own deadline.  A page that fetched fine but
turns out to be an error or challenge page counts as a failed attempt.
``ingest`` only raises :class:`InvalidURLError`; every other failure ends in
a (possibly minimal) record.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

import structlog

from linksnap.config import settings
from linksnap.scraper.classifier import classify, requires_rendering
from linksnap.scraper.detector import is_error_result
from linksnap.scraper.extractor import (
    DESCRIPTION_MAX,
    TITLE_MAX,
    Page,
    declared_title,
    extract_description,
    extract_page,
)
from linksnap.scraper.fetcher import DirectFetcher, FetchStrategy, MetadataFetcher, build_renderer
from linksnap.scraper.images import is_valid_image_url
from linksnap.scraper.models import (
    ContentType,
    FailureReason,
    FetchMethod,
    FetchResult,
    MetadataPayload,
    RecordMeta,
    ScrapedRecord,
)
from linksnap.scraper.urls import (
    default_favicon,
    normalize_url,
    parse_url,
    title_from_url,
    truncate,
)

logger = structlog.get_logger(__name__)

# Seconds added to a strategy's own timeout before the attempt is abandoned.
DEADLINE_GRACE = 2.0

_MEDIA_TYPES = (ContentType.IMAGE, ContentType.PDF)


class Strategy(str, Enum):
    DIRECT = "direct"
    RENDERING = "rendering"
    METADATA = "metadata"


class FetchState(str, Enum):
    NOT_STARTED = "not_started"
    TRIED_DIRECT = "tried_direct"
    TRIED_RENDERING = "tried_rendering"
    TRIED_METADATA = "tried_metadata"
    DONE = "done"


_ORDER: dict[bool, tuple[Strategy, ...]] = {
    False: (Strategy.DIRECT, Strategy.RENDERING, Strategy.METADATA),
    True: (Strategy.RENDERING, Strategy.DIRECT, Strategy.METADATA),
}

_TRIED: dict[Strategy, FetchState] = {
    Strategy.DIRECT: FetchState.TRIED_DIRECT,
    Strategy.RENDERING: FetchState.TRIED_RENDERING,
    Strategy.METADATA: FetchState.TRIED_METADATA,
}
_LAST_TRIED = {state: strategy for strategy, state in _TRIED.items()}


def next_strategy(
    state: FetchState,
    last_result: Optional[FetchResult],
    *,
    render_first: bool,
) -> Optional[Strategy]:
    """Return the strategy to try next, or ``None`` when there is nothing left.

    A successful *last_result* always ends the chain.
    """
    if state is FetchState.DONE:
        return None
    if last_result is not None and last_result.ok:
        return None

    order = _ORDER[render_first]
    if state is FetchState.NOT_STARTED:
        return order[0]
    position = order.index(_LAST_TRIED[state]) + 1
    return order[position] if position < len(order) else None


# ---------------------------------------------------------------------------
# Records built without page HTML
# ---------------------------------------------------------------------------

def media_record(url: str, content_type: ContentType) -> ScrapedRecord:
    """Record for a direct link to an image or a PDF; no fetch needed."""
    return ScrapedRecord(
        url=url,
        title=truncate(title_from_url(url), TITLE_MAX),
        content_type=content_type,
        image=url if content_type is ContentType.IMAGE and is_valid_image_url(url) else None,
        meta=RecordMeta(favicon=default_favicon(url), canonical_url=url),
        method=FetchMethod.MEDIA,
    )


def metadata_record(
    url: str, payload: MetadataPayload, content_type: ContentType
) -> ScrapedRecord:
    """Sparse record from the metadata service; the screenshot beats the og image."""
    image = None
    for candidate in (payload.screenshot_url, payload.image):
        candidate = normalize_url(candidate, url)
        if is_valid_image_url(candidate):
            image = candidate
            break
    return ScrapedRecord(
        url=url,
        title=truncate(payload.title, TITLE_MAX) or truncate(title_from_url(url), TITLE_MAX),
        content_type=content_type,
        description=truncate(payload.description, DESCRIPTION_MAX),
        image=image,
        meta=RecordMeta(
            site_name=payload.publisher,
            favicon=normalize_url(payload.logo_url, url) or default_favicon(url),
            canonical_url=url,
            author=payload.author,
        ),
        method=FetchMethod.METADATA,
    )


def minimal_record(url: str, content_type: ContentType) -> ScrapedRecord:
    """Last resort when every strategy failed."""
    return ScrapedRecord(
        url=url,
        title=truncate(title_from_url(url), TITLE_MAX),
        content_type=content_type,
        meta=RecordMeta(favicon=default_favicon(url), canonical_url=url),
        method=FetchMethod.FALLBACK,
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class IngestPipeline:
    """Turns a URL into a :class:`ScrapedRecord`.

    Strategies default to the configured ones and can be swapped out, which
    is how the tests drive it.
    """

    def __init__(
        self,
        direct: Optional[FetchStrategy] = None,
        rendering: Optional[FetchStrategy] = None,
        metadata: Optional[FetchStrategy] = None,
        render_first_hosts: Optional[frozenset[str]] = None,
    ) -> None:
        self.strategies: dict[Strategy, FetchStrategy] = {
            Strategy.DIRECT: direct or DirectFetcher(),
            Strategy.RENDERING: rendering or build_renderer(),
            Strategy.METADATA: metadata or MetadataFetcher(),
        }
        self.render_first_hosts = (
            settings.render_first_hosts if render_first_hosts is None else render_first_hosts
        )

    async def ingest(self, url: str) -> ScrapedRecord:
        """Fetch, escalate and extract.  Raises only :class:`InvalidURLError`."""
        url = parse_url(url)
        content_type = classify(url)
        if content_type in _MEDIA_TYPES:
            logger.info("ingest.media", url=url, content_type=content_type.value)
            return media_record(url, content_type)

        render_first = requires_rendering(url, self.render_first_hosts)
        state = FetchState.NOT_STARTED
        result: Optional[FetchResult] = None

        while True:
            strategy = next_strategy(state, result, render_first=render_first)
            if strategy is None:
                break
            result = await self._attempt(self.strategies[strategy], url)
            state = _TRIED[strategy]

            record = self._record_from(result, url, content_type) if result.ok else None
            if record is not None:
                logger.info(
                    "ingest.done",
                    url=url,
                    strategy=strategy.value,
                    content_type=record.content_type.value,
                )
                return record
            if result.ok:
                result = FetchResult.failure(
                    result.method, FailureReason.ERROR_PAGE, "error or challenge page"
                )
            logger.info(
                "ingest.escalate",
                url=url,
                strategy=strategy.value,
                reason=result.error.value if result.error else None,
                detail=result.detail,
            )

        logger.warning("ingest.exhausted", url=url, content_type=content_type.value)
        return minimal_record(url, content_type)

    async def _attempt(self, fetcher: FetchStrategy, url: str) -> FetchResult:
        try:
            return await asyncio.wait_for(
                fetcher.fetch(url), timeout=fetcher.timeout + DEADLINE_GRACE
            )
        except asyncio.TimeoutError:
            return FetchResult.failure(fetcher.method, FailureReason.TIMEOUT, "deadline exceeded")
        except Exception as exc:
            logger.exception("ingest.strategy_failed", url=url, strategy=fetcher.method.value)
            return FetchResult.failure(fetcher.method, FailureReason.UNEXPECTED, repr(exc))

    @staticmethod
    def _record_from(
        result: FetchResult, url: str, content_type: ContentType
    ) -> Optional[ScrapedRecord]:
        """Build a record from a successful fetch; ``None`` for an error page."""
        if result.metadata is not None:
            payload = result.metadata
            if is_error_result(payload.title, payload.description):
                return None
            return metadata_record(url, payload, content_type)

        page = Page.parse(result.html or "", url)
        if is_error_result(declared_title(page), extract_description(page)):
            return None
        return extract_page(page, content_type, result.method)


async def ingest(url: str) -> ScrapedRecord:
    """Ingest *url* with the configured strategies."""
    return await IngestPipeline().ingest(url)


def ingest_sync(url: str) -> ScrapedRecord:
    """Blocking wrapper around :func:`ingest` for scripts and the CLI."""
    return asyncio.run(ingest(url))
