"""Scan job config endpoints."""

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Body

from mediatorr_api.api.deps import ScanConfigDep
from mediatorr_api.api.exceptions import ErrorResponse, InvalidConfigError
from mediatorr_api.schemas.config import ConfigSavedResponse

router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config(scan_config: ScanConfigDep) -> dict[str, Any]:
    """Get the scan job config with the API key masked."""
    return await asyncio.to_thread(scan_config.masked)


@router.put(
    "/config",
    responses={
        400: {"model": ErrorResponse, "description": "Body is not a JSON object"},
        500: {"model": ErrorResponse, "description": "Config file not writable"},
    },
)
async def save_config(
    scan_config: ScanConfigDep, body: Annotated[Any, Body()] = None
) -> ConfigSavedResponse:
    """Replace the scan job config.

    Sending back the masked API key keeps the stored one.
    """
    if not isinstance(body, dict):
        raise InvalidConfigError()
    await asyncio.to_thread(scan_config.save, body)
    return ConfigSavedResponse()
