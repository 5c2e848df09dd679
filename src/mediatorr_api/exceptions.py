"""Custom exceptions for mediatorr.

All exceptions include an HTTP status_code and a machine-readable
error_code for easy integration with the FastAPI exception handlers.
"""


class MediatorrError(Exception):
    """Base exception for mediatorr application errors.

    Subclasses should define:
    - status_code: HTTP status code
    - error_code: Machine-readable error identifier
    """

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# -- Scan Exceptions --


class ScanAlreadyRunningError(MediatorrError):
    """Raised when a scan is requested while one is in flight."""

    status_code = 409
    error_code = "scan_in_progress"

    def __init__(self) -> None:
        super().__init__("Scan already in progress")


class NoScanRunningError(MediatorrError):
    """Raised when stopping while no scan process is held."""

    status_code = 409
    error_code = "no_scan_running"

    def __init__(self) -> None:
        super().__init__("No scan is running")


class ScanStartError(MediatorrError):
    """Raised when the scan subprocess cannot be spawned."""

    status_code = 500
    error_code = "scan_start_failed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to start scan: {reason}")


# -- Override Exceptions --


class OverrideStoreError(MediatorrError):
    """Raised when the override table cannot be written or read."""

    status_code = 500
    error_code = "override_store_failed"


class OverrideNotSupportedError(MediatorrError):
    """Raised for media types that have no external catalog ID."""

    status_code = 400
    error_code = "override_not_supported"

    def __init__(self, media_type: str) -> None:
        self.media_type = media_type
        super().__init__(f"Overrides are not supported for {media_type}")


# -- Config Exceptions --


class ConfigStoreError(MediatorrError):
    """Raised when the scan job config file cannot be written."""

    status_code = 500
    error_code = "config_save_failed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to save config: {reason}")
