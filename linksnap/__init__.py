"""Linksnap — turn a URL into a normalized content record."""

from linksnap.scraper import IngestPipeline, InvalidURLError, ScrapedRecord, ingest, ingest_sync

__version__ = "0.1.0"

__all__ = ["ingest", "ingest_sync", "IngestPipeline", "InvalidURLError", "ScrapedRecord"]
