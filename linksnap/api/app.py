"""FastAPI application factory.

Routers
-------
    /ingest    — turn a URL into a content record
    /health    — liveness probe

One :class:`IngestPipeline` is built per application and shared by all
requests via ``request.app.state.pipeline``; it holds no per-request state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linksnap import __version__
from linksnap.api.routers import ingest as ingest_router
from linksnap.config import settings
from linksnap.observability import configure_logging
from linksnap.scraper.orchestrator import IngestPipeline


def create_app(pipeline: Optional[IngestPipeline] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Linksnap API",
        description=(
            "Turns a URL into a normalized content record: title, description, "
            "hero image, readable text and per-type metadata."
        ),
        version=__version__,
    )
    app.state.pipeline = pipeline or IngestPipeline()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ingest_router.router, prefix="/ingest", tags=["ingest"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn linksnap.api.app:app --reload
app = create_app()
