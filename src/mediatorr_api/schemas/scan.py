"""Scan control API schemas."""

from typing import Literal

from pydantic import Field

from mediatorr_api.core.enums import ProcessState
from mediatorr_api.core.models import CamelModel, ScanStatus


class ScanStartedResponse(CamelModel):
    """Response when a scan is started."""

    status: Literal["started"] = "started"
    pid: int


class ScanStoppedResponse(CamelModel):
    """Response when a scan stop is requested."""

    status: Literal["stopping"] = "stopping"


class StatusResponse(CamelModel):
    """Status file view plus the state of the owned scan process."""

    status: ScanStatus
    process_state: ProcessState = Field(
        description="Authoritative state of the scan process owned by this server"
    )
    process_running: bool
