"""FastAPI dependency injection factories.

This module provides type-safe dependency injection for FastAPI routes.
Dependencies are defined as Annotated types for clean, reusable injection.

Usage in routes:
    from mediatorr_api.api.deps import CatalogDep, ScanManagerDep

    @router.get("/media/{media_type}")
    async def list_media(catalog: CatalogDep) -> ...:
        ...
"""

from typing import Annotated

from fastapi import Depends

from mediatorr_api.api.container import Services, get_services
from mediatorr_api.services.artifacts import ArtifactStore
from mediatorr_api.services.catalog import MediaCatalog
from mediatorr_api.services.event_bus import ScanEventBus
from mediatorr_api.services.image_proxy import ImageProxy
from mediatorr_api.services.log_buffer import LogBuffer
from mediatorr_api.services.protocols import OverrideStore
from mediatorr_api.services.scan_config import ScanConfigStore
from mediatorr_api.services.scan_process import ScanProcessManager
from mediatorr_api.services.status_watcher import StatusWatcher
from mediatorr_api.settings import Settings, get_settings

# -- Settings --

SettingsDep = Annotated[Settings, Depends(get_settings)]

# -- Service dependencies (request-scoped via app.state) --

ServicesDep = Annotated[Services, Depends(get_services)]


def _get_catalog(services: ServicesDep) -> MediaCatalog:
    """Get media catalog from services container."""
    return services.catalog


def _get_artifacts(services: ServicesDep) -> ArtifactStore:
    """Get artifact store from services container."""
    return services.artifacts


def _get_overrides(services: ServicesDep) -> OverrideStore:
    """Get override store from services container."""
    return services.overrides


def _get_scan_manager(services: ServicesDep) -> ScanProcessManager:
    """Get scan process manager from services container."""
    return services.scan_manager


def _get_status_watcher(services: ServicesDep) -> StatusWatcher:
    """Get status watcher from services container."""
    return services.status_watcher


def _get_event_bus(services: ServicesDep) -> ScanEventBus:
    """Get event bus from services container."""
    return services.event_bus


def _get_image_proxy(services: ServicesDep) -> ImageProxy:
    """Get image proxy from services container."""
    return services.image_proxy


def _get_scan_config(services: ServicesDep) -> ScanConfigStore:
    """Get scan config store from services container."""
    return services.scan_config


def _get_log_buffer(services: ServicesDep) -> LogBuffer:
    """Get log buffer from services container."""
    return services.log_buffer


CatalogDep = Annotated[MediaCatalog, Depends(_get_catalog)]
ArtifactsDep = Annotated[ArtifactStore, Depends(_get_artifacts)]
OverridesDep = Annotated[OverrideStore, Depends(_get_overrides)]
ScanManagerDep = Annotated[ScanProcessManager, Depends(_get_scan_manager)]
StatusWatcherDep = Annotated[StatusWatcher, Depends(_get_status_watcher)]
EventBusDep = Annotated[ScanEventBus, Depends(_get_event_bus)]
LogBufferDep = Annotated[LogBuffer, Depends(_get_log_buffer)]
ImageProxyDep = Annotated[ImageProxy, Depends(_get_image_proxy)]
ScanConfigDep = Annotated[ScanConfigStore, Depends(_get_scan_config)]
