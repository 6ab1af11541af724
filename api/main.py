"""
API Entry Point for Estación Dulce Resources

FastAPI app exposing:
1. The resource catalog and conditional resource reads (ETag / 304)
2. Detail tools for full product, recipe and person records
3. Cache management (stats, invalidation, clear)

Run with: uvicorn api.main:app
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from api import cache, resources, tools
from dulce import __version__
from dulce.audit.logger import AuditLogger, SqlAuditSink
from dulce.resources.registry import ResourceRegistry
from dulce.store.session import create_db_engine, init_db, make_session_factory
from dulce.store.sql import SqlDocumentStore
from dulce.tools.details import DetailTools
from dulce.utils.config import get_settings

# Configure logging to stdout (platforms often treat stderr as errors)
logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def build_services(app: FastAPI) -> None:
    """Wire the SQL-backed store, registry and tools onto app.state."""
    engine = create_db_engine()
    init_db(engine)
    session_factory = make_session_factory(engine)

    store = SqlDocumentStore(session_factory)
    settings = get_settings()
    app.state.registry = ResourceRegistry(store, uri_prefix=settings.RESOURCE_URI_PREFIX)
    app.state.tools = DetailTools(store, AuditLogger(SqlAuditSink(session_factory)))


def create_app(
    registry: Optional[ResourceRegistry] = None,
    detail_tools: Optional[DetailTools] = None,
) -> FastAPI:
    """
    Create the FastAPI app.

    Pass registry and detail_tools to run against other stores (tests use
    the in-memory store); otherwise the SQL store is wired at startup.
    """
    app = FastAPI(
        title="Estación Dulce Resources",
        description="Cached, conditionally readable views over the shop's catalog and activity",
        version=__version__,
    )

    app.include_router(resources.router)
    app.include_router(tools.router)
    app.include_router(cache.router)

    if registry is not None and detail_tools is not None:
        app.state.registry = registry
        app.state.tools = detail_tools
    else:
        @app.on_event("startup")
        async def startup_event():
            """Initialize database and services on startup."""
            logger.info("Initializing database...")
            build_services(app)
            logger.info(f"Services ready ({get_settings().ENVIRONMENT})")

    @app.get("/health")
    async def health():
        """Health check endpoint. No authentication."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        }

    return app


app = create_app()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not get_settings().is_production,
    )
