"""Services container for dependency injection.

This module provides the Services container and dependency injection
utilities for accessing services from FastAPI routes via app.state.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from mediatorr_api.services.artifacts import ArtifactStore
from mediatorr_api.services.catalog import MediaCatalog
from mediatorr_api.services.event_bus import ScanEventBus
from mediatorr_api.services.image_proxy import ImageProxy
from mediatorr_api.services.log_buffer import LogBuffer
from mediatorr_api.services.protocols import OverrideStore
from mediatorr_api.services.scan_config import ScanConfigStore
from mediatorr_api.services.scan_process import ScanProcessManager
from mediatorr_api.services.status_watcher import StatusWatcher

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Container for application services with proper lifecycle management.

    All services are created at startup and cleaned up at shutdown.
    Stored in FastAPI's app.state for proper request scoping.
    """

    event_bus: ScanEventBus
    log_buffer: LogBuffer
    status_watcher: StatusWatcher
    scan_manager: ScanProcessManager
    artifacts: ArtifactStore
    overrides: OverrideStore
    catalog: MediaCatalog
    image_proxy: ImageProxy
    scan_config: ScanConfigStore

    def start(self) -> None:
        """Start background services. Requires a running event loop."""
        self.log_buffer.attach(self.event_bus)
        self.status_watcher.start()

    async def close(self) -> None:
        """Clean up resources. Called at application shutdown."""
        await self.status_watcher.stop()
        await self.scan_manager.shutdown()
        await self.image_proxy.close()
        self.log_buffer.detach()
        self.log_buffer.clear()
        logger.info("Services cleaned up")


def get_services(request: Request) -> Services:
    """Get services from request's app state (dependency injection).

    Args:
        request: FastAPI request object.

    Returns:
        Services container.

    Raises:
        RuntimeError: If services not initialized (app not running).
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Is the app running?")
    return services
