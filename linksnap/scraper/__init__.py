"""Scraper package — classification, fetch strategies and extraction."""

from linksnap.scraper.classifier import classify
from linksnap.scraper.extractor import extract
from linksnap.scraper.models import ContentType, FetchMethod, InvalidURLError, RecordMeta, ScrapedRecord
from linksnap.scraper.orchestrator import IngestPipeline, ingest, ingest_sync

__all__ = [
    "ingest",
    "ingest_sync",
    "IngestPipeline",
    "classify",
    "extract",
    "ContentType",
    "FetchMethod",
    "InvalidURLError",
    "RecordMeta",
    "ScrapedRecord",
]
