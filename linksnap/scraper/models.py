"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


class InvalidURLError(ValueError):
    """Raised when the input does not parse as an absolute http(s) URL."""


class ContentType(str, Enum):
    WEBSITE = "website"
    ARTICLE = "article"
    VIDEO = "video"
    IMAGE = "image"
    PRODUCT = "product"
    SOCIAL = "social"
    PDF = "pdf"
    CODE = "code"


class FetchMethod(str, Enum):
    """Provenance of a record: which strategy produced it."""

    DIRECT = "direct"
    RENDERING = "rendering"
    METADATA = "metadata"
    MEDIA = "media"
    FALLBACK = "fallback"


class FailureReason(str, Enum):
    BLOCKED = "blocked"
    ACCESS_DENIED = "access_denied"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    NOT_HTML = "not_html"
    TIMEOUT = "timeout"
    NETWORK = "network"
    INVALID_CREDENTIALS = "invalid_credentials"
    QUOTA_EXCEEDED = "quota_exceeded"
    NOT_CONFIGURED = "not_configured"
    EMPTY = "empty"
    ERROR_PAGE = "error_page"
    UNEXPECTED = "unexpected"


_TRANSIENT = frozenset({
    FailureReason.SERVER_ERROR,
    FailureReason.TIMEOUT,
    FailureReason.NETWORK,
})


@dataclass(frozen=True)
class MetadataPayload:
    """What the metadata-extraction service knows about a URL."""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    screenshot_url: Optional[str] = None
    logo_url: Optional[str] = None
    author: Optional[str] = None
    publisher: Optional[str] = None


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a single fetch strategy.

    A failed attempt carries ``html=None`` and an ``error`` tag; strategies
    never raise for ordinary network or HTTP failures.
    """

    method: FetchMethod
    html: Optional[str] = None
    error: Optional[FailureReason] = None
    detail: str = ""
    metadata: Optional[MetadataPayload] = None

    @property
    def ok(self) -> bool:
        return self.error is None and (bool(self.html) or self.metadata is not None)

    @property
    def retryable(self) -> bool:
        """``True`` for transient failures; credential/quota errors are final."""
        return self.error in _TRANSIENT

    @classmethod
    def failure(
        cls, method: FetchMethod, error: FailureReason, detail: str = ""
    ) -> "FetchResult":
        return cls(method=method, error=error, detail=detail)


@dataclass(frozen=True)
class RecordMeta:
    site_name: Optional[str] = None
    favicon: Optional[str] = None
    canonical_url: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None
    author: Optional[str] = None
    published_time: Optional[str] = None
    reading_time_minutes: Optional[int] = None
    has_code: Optional[bool] = None
    video_url: Optional[str] = None


@dataclass(frozen=True)
class ScrapedRecord:
    """Normalized content record produced by one ingestion call."""

    url: str
    title: str
    content_type: ContentType
    description: str = ""
    image: Optional[str] = None
    content: str = ""
    text_content: str = ""
    meta: RecordMeta = field(default_factory=RecordMeta)
    method: FetchMethod = FetchMethod.DIRECT

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict (enum members rendered as their values)."""
        data = asdict(self)
        data["content_type"] = self.content_type.value
        data["method"] = self.method.value
        return data

    def summary_input(self, max_chars: int = 600) -> Optional[dict[str, str]]:
        """Payload for the summarization collaborator.

        Returns ``None`` when there is too little text to be worth
        summarizing; callers then fall back to ``description``.
        """
        text = self.text_content.strip()
        if len(text) <= 50:
            return None
        return {"title": self.title, "text": text[:max_chars]}
