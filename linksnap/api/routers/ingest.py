"""Ingestion endpoint.

Routes
------
POST /ingest    Body: {"url": "https://..."}    → ScrapedRecord as JSON
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from linksnap.scraper.models import InvalidURLError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class IngestRequest(BaseModel):
    # Validated by the pipeline so malformed input gets one consistent error.
    url: str


class RecordMetaResponse(BaseModel):
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


class IngestResponse(BaseModel):
    url: str
    title: str
    content_type: str
    description: str
    image: Optional[str] = None
    content: str
    text_content: str
    meta: RecordMetaResponse
    method: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=IngestResponse)
async def ingest_endpoint(body: IngestRequest, request: Request) -> dict[str, Any]:
    """Fetch *url*, escalating through fetch strategies, and return its record.

    Only a malformed URL is an error (422); unreachable or blocked pages
    still produce a minimal record.
    """
    pipeline = request.app.state.pipeline
    try:
        record = await pipeline.ingest(body.url)
    except InvalidURLError as exc:
        logger.info("api.invalid_url", url=body.url)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return record.to_dict()
