"""Scan config API schemas."""

from typing import Literal

from mediatorr_api.core.models import CamelModel


class ConfigSavedResponse(CamelModel):
    """Response when the scan config is replaced."""

    status: Literal["Config saved"] = "Config saved"
