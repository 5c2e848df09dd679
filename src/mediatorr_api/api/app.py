"""FastAPI application factory and configuration."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from rich.logging import RichHandler
from sqlalchemy import Engine

from mediatorr_api.api.container import Services
from mediatorr_api.api.exceptions import register_exception_handlers
from mediatorr_api.api.routes import (
    config,
    events,
    images,
    logs,
    media,
    scan,
    stats,
)
from mediatorr_api.db import OverrideRepository, create_db_engine, init_db
from mediatorr_api.services.artifacts import ArtifactStore
from mediatorr_api.services.catalog import MediaCatalog
from mediatorr_api.services.event_bus import ScanEventBus
from mediatorr_api.services.image_proxy import ImageProxy
from mediatorr_api.services.log_buffer import LogBuffer
from mediatorr_api.services.metadata_cache import MetadataCache
from mediatorr_api.services.scan_config import ScanConfigStore
from mediatorr_api.services.scan_process import ScanProcessManager
from mediatorr_api.services.status_watcher import StatusWatcher
from mediatorr_api.settings import Settings, get_settings


def setup_logging(settings: Settings) -> None:
    """Configure logging with Rich handler for all loggers including uvicorn."""
    console = Console(force_terminal=True)
    handler = RichHandler(
        console=console, rich_tracebacks=True, show_path=False, markup=False
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))

    # Configure root logger
    logging.root.handlers = [handler]
    logging.root.setLevel(settings.log_level)

    # Configure uvicorn loggers to use Rich
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False


logger = logging.getLogger(__name__)


def create_services(settings: Settings, engine: Engine) -> Services:
    """Create all application services with proper dependency wiring.

    Args:
        settings: Application settings.
        engine: Engine of the override database.

    Returns:
        Services container with all application services.
    """
    event_bus = ScanEventBus(max_subscribers=settings.max_event_subscribers)
    log_buffer = LogBuffer(capacity=settings.log_buffer_size)

    metadata_cache = MetadataCache(settings.tmdb_cache, settings.itunes_cache)
    artifacts = ArtifactStore(settings.library, metadata_cache)
    overrides = OverrideRepository(engine)
    catalog = MediaCatalog(
        artifacts=artifacts,
        metadata_cache=metadata_cache,
        overrides=overrides,
        status_file=settings.status_file,
    )

    status_watcher = StatusWatcher(
        status_file=settings.status_file,
        event_bus=event_bus,
        poll_interval=settings.status_poll_seconds,
    )
    scan_manager = ScanProcessManager(
        command=settings.scan_command,
        status_file=settings.status_file,
        event_bus=event_bus,
        stop_grace_seconds=settings.stop_grace_seconds,
    )
    image_proxy = ImageProxy(
        base_url=settings.tmdb_image_url,
        timeout=settings.image_timeout_seconds,
    )
    scan_config = ScanConfigStore(settings.config_file)

    return Services(
        event_bus=event_bus,
        log_buffer=log_buffer,
        status_watcher=status_watcher,
        scan_manager=scan_manager,
        artifacts=artifacts,
        overrides=overrides,
        catalog=catalog,
        image_proxy=image_proxy,
        scan_config=scan_config,
    )


def create_api_router() -> APIRouter:
    """Create the API router with all routes under /api prefix."""
    api_router = APIRouter(prefix="/api")
    api_router.include_router(stats.router)
    api_router.include_router(media.router)
    api_router.include_router(scan.router)
    api_router.include_router(logs.router)
    api_router.include_router(events.router)
    api_router.include_router(images.router)
    api_router.include_router(config.router)
    return api_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    logger.info("Starting application...")

    # Create tables (in thread to avoid blocking event loop)
    engine = create_db_engine(settings.db_path)
    await asyncio.to_thread(init_db, engine)
    logger.info("Database ready at %s", settings.db_path)

    services = create_services(settings, engine)
    app.state.services = services
    services.start()
    logger.info("Services initialized")

    try:
        yield
    finally:
        # Stops the watcher, then any running scan
        await services.close()
        engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the main FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="mediatorr",
        description="Media library manager API",
        version=version("mediatorr-api"),
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    # Register exception handlers
    register_exception_handlers(app)

    # CORS middleware (type ignore needed due to Starlette typing limitations)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes under /api prefix
    app.include_router(create_api_router())

    return app


def _create_default_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings)
    return create_app(settings)


# Create app instance for uvicorn
app = _create_default_app()
