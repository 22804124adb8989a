"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens a single SQLite connection and
initialises the schema, then builds the shared stores:

    app.state.graph    async graph adapter (owns the connection)
    app.state.objects  object store for document bodies
    app.state.ranker   FTS5 ranker used by /search

On shutdown the connection is closed.

Routers
-------
    /documents  document CRUD, links, working copies, concept usage
    /concepts   glossary CRUD, concept relations, impact analysis
    /pages      page CRUD, displayed document, moving pages
    /versions   version CRUD and navigation trees
    /tags       tag CRUD and tagging
    /search     ranked document search
    /health     liveness and database check

Errors raised as :class:`~docgraph.errors.AppError` are rendered as
``{"error": {"code", "message", "details"}}`` with their status code.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docgraph.api.routers import concepts as concepts_router
from docgraph.api.routers import documents as documents_router
from docgraph.api.routers import health as health_router
from docgraph.api.routers import pages as pages_router
from docgraph.api.routers import search as search_router
from docgraph.api.routers import tags as tags_router
from docgraph.api.routers import versions as versions_router
from docgraph.config import settings
from docgraph.db import get_connection, init_db
from docgraph.errors import AppError, InternalError
from docgraph.log import get_logger, setup_logging
from docgraph.store import GraphStore, ObjectStore, SqliteRanker

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and close them on shutdown."""
    setup_logging(settings.log_level, settings.log_json)
    conn = get_connection()
    init_db(conn)
    graph = GraphStore(conn)
    app.state.graph = graph
    app.state.objects = ObjectStore(settings.content_dir)
    app.state.ranker = SqliteRanker(graph)
    logger.info("api started", db_path=str(settings.db_path))
    try:
        yield
    finally:
        graph.close()
        logger.info("api stopped")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed", path=request.url.path, code=exc.code, message=exc.message)
    else:
        logger.info("request rejected", path=request.url.path, code=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error", path=request.url.path)
    error = InternalError("An unexpected error occurred")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="docgraph API",
        description=(
            "REST interface for the docgraph documentation platform. "
            "Exposes documents, glossary concepts, versioned page trees, "
            "tags, impact analysis and ranked search over a property graph."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(documents_router.router, prefix="/documents", tags=["documents"])
    app.include_router(concepts_router.router, prefix="/concepts", tags=["concepts"])
    app.include_router(pages_router.router, prefix="/pages", tags=["pages"])
    app.include_router(versions_router.router, prefix="/versions", tags=["versions"])
    app.include_router(tags_router.router, prefix="/tags", tags=["tags"])
    app.include_router(search_router.router, prefix="/search", tags=["search"])
    app.include_router(health_router.router, prefix="/health", tags=["health"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn docgraph.api.app:app --reload
app = create_app()
