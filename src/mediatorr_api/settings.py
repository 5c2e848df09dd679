"""Application settings using pydantic-settings."""

import json
import shlex
from functools import cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


def _split_command(v: Any) -> Any:
    """Accept the scan command as a JSON list or a shell-style string."""
    if isinstance(v, str):
        if v.lstrip().startswith("["):
            return json.loads(v)
        return shlex.split(v)
    return v


ScanCommand = Annotated[list[str], NoDecode, BeforeValidator(_split_command)]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEDIATORR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared data volume (the scan job writes here too)
    data: Path = Field(default=Path("/data"), description="Data directory")

    # Path settings (default to data-relative paths)
    library: Path = Field(description="Media library root (one folder per type)")
    tmdb_cache: Path = Field(description="TMDb metadata cache directory")
    itunes_cache: Path = Field(description="iTunes metadata cache directory")
    status_file: Path = Field(description="Status file written by the scan job")
    db_path: Path = Field(description="SQLite database for ID overrides")
    config_file: Path = Field(description="JSON config read by the scan job")

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Log level")

    # CORS settings
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Scan job
    scan_command: ScanCommand = Field(
        default=["node", "/app/scene-maker.js"],
        min_length=1,
        description="Command used to run the external scan job",
    )
    stop_grace_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Delay between SIGTERM and SIGKILL when stopping a scan",
    )
    status_poll_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Status file polling interval",
    )

    # Live events
    log_buffer_size: int = Field(
        default=200, ge=1, description="Number of scan log entries retained"
    )
    max_event_subscribers: int = Field(
        default=50,
        ge=1,
        description="Subscriber count above which a leak warning is logged",
    )
    sse_heartbeat_seconds: float = Field(
        default=30.0, gt=0, description="Keepalive interval for SSE streams"
    )

    # Image proxy
    tmdb_image_url: str = Field(
        default="https://image.tmdb.org/t/p",
        description="Base URL for proxied TMDb images",
    )
    image_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Upstream timeout for proxied images"
    )

    @model_validator(mode="before")
    @classmethod
    def set_path_defaults(cls, data: Any) -> Any:
        """Set path defaults based on data before validation."""
        if not isinstance(data, dict):
            return data
        data_dir = data.get("data") or Path("/data")
        data_dir = Path(data_dir) if isinstance(data_dir, str) else data_dir
        data.setdefault("data", data_dir)
        defaults = {
            "library": data_dir / "torrent",
            "tmdb_cache": data_dir / "cache_tmdb",
            "itunes_cache": data_dir / "cache_itunes",
            "status_file": data_dir / "status.json",
            "db_path": data_dir / "mediatorr.db",
            "config_file": data_dir / "config.json",
        }
        for key, value in defaults.items():
            if not data.get(key):
                data[key] = value
        return data


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
