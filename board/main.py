"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from board.api.health import router as health_router
from board.api.posts import router as posts_router
from board.api.sync import router as sync_router
from board.config import APP_VERSION, Settings
from board.database import create_engine, create_search_engine
from board.exceptions import InternalServerError, PostNotFoundError, SearchQueryError
from board.models.base import Base
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue
from board.services.sync_worker import SyncWorker

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)


def ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if not database_url.startswith("sqlite") or "///" not in database_url:
        return
    db_path = database_url.split("///", 1)[-1]
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    _configure_logging(settings.debug)
    logger.info("Starting bulletin board (debug=%s)", settings.debug)

    ensure_sqlite_dir(settings.database_url)
    ensure_sqlite_dir(settings.search_database_url)

    try:
        engine, session_factory = create_engine(settings)
        app.state.engine = engine
        app.state.session_factory = session_factory
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.critical(
            "Failed to initialize post database: %s. Check database path and permissions.", exc
        )
        raise

    try:
        search_engine = create_search_engine(settings)
        search_index = SearchIndex(search_engine)
        await search_index.create_index()
        app.state.search_engine = search_engine
        app.state.search_index = search_index
    except Exception as exc:
        logger.critical("Failed to initialize search index: %s.", exc)
        raise

    if settings.search_rebuild_on_startup:
        logger.warning("search_rebuild_on_startup is set: rebuilding search index from posts")
        from board.services.reindex_service import rebuild_search_index

        try:
            async with session_factory() as session:
                indexed, failed = await rebuild_search_index(session, search_index)
            logger.info("Indexed %d posts on startup (%d failed)", indexed, failed)
        except Exception as exc:
            logger.error("Search index rebuild on startup failed: %s", exc, exc_info=True)

    sync_queue = SyncEventQueue()
    sync_worker = SyncWorker(
        sync_queue,
        session_factory,
        search_index,
        interval_seconds=settings.sync_interval_seconds,
        event_timeout_seconds=settings.sync_event_timeout_seconds,
    )
    app.state.sync_queue = sync_queue
    app.state.sync_worker = sync_worker
    sync_worker.start()

    yield

    try:
        await sync_worker.stop(flush=settings.sync_flush_on_shutdown)
    except Exception as exc:
        logger.error("Error during sync worker shutdown: %s", exc, exc_info=True)

    for name, eng in (("post", engine), ("search", search_engine)):
        try:
            await eng.dispose()
        except Exception as exc:
            logger.error("Error during %s engine disposal: %s", name, exc, exc_info=True)

    logger.info("Bulletin board stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    docs_enabled = settings.debug or settings.expose_docs

    app = FastAPI(
        title="Bulletin Board",
        description="Posts with a search index kept in sync by a background worker",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=500)

    cors_origins = (
        settings.cors_origins
        if settings.cors_origins
        else (["http://localhost:5173", "http://localhost:8000"] if settings.debug else [])
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(posts_router)
    app.include_router(sync_router)

    # Global exception handlers

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            field = str(loc[-1]) if loc else "unknown"
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        logger.warning(
            "RequestValidationError in %s %s: %s",
            request.method,
            request.url.path,
            errors,
        )
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.exception_handler(PostNotFoundError)
    async def post_not_found_handler(request: Request, exc: PostNotFoundError) -> JSONResponse:
        logger.info("Post %d not found in %s %s", exc.post_id, request.method, request.url.path)
        return JSONResponse(status_code=404, content={"detail": "Post not found"})

    @app.exception_handler(SearchQueryError)
    async def search_query_error_handler(
        request: Request, exc: SearchQueryError
    ) -> JSONResponse:
        logger.error(
            "SearchQueryError in %s %s: %s", request.method, request.url.path, exc, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"detail": "Search query failed"})

    @app.exception_handler(InternalServerError)
    async def internal_server_error_handler(
        request: Request, exc: InternalServerError
    ) -> JSONResponse:
        logger.error(
            "InternalServerError in %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.error("ValueError in %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        message = str(exc) or "Invalid value"
        return JSONResponse(
            status_code=422,
            content={"detail": message},
        )

    @app.exception_handler(TypeError)
    async def type_error_handler(request: Request, exc: TypeError) -> JSONResponse:
        logger.error(
            "[BUG] TypeError in %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        logger.error(
            "OperationalError in %s %s: %s", request.method, request.url.path, exc, exc_info=exc
        )
        return JSONResponse(
            status_code=503,
            content={"detail": "Database temporarily unavailable"},
        )

    return app


app = create_app()


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(
        "board.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
