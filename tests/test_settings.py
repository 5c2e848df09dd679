"""Tests for application settings."""

import os
from pathlib import Path
from typing import Any

import pytest
from mediatorr_api.settings import Settings
from pydantic import ValidationError

TEST_DATA = Path("/tmp/test/data")


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from .env file and shell environment."""
    # Clear all MEDIATORR_* env vars
    for key in list(os.environ.keys()):
        if key.startswith("MEDIATORR_"):
            monkeypatch.delenv(key, raising=False)
    # Change to temp dir so Settings won't find .env file
    monkeypatch.chdir(tmp_path)


def _create_settings(**kwargs: Any) -> Settings:
    """Helper to create Settings with a test data directory."""
    defaults: dict[str, Any] = {"data": TEST_DATA}
    defaults.update(kwargs)
    return Settings(**defaults)


class TestPathDefaults:
    """Tests for data-relative path defaults."""

    def test_paths_follow_data_dir(self) -> None:
        settings = _create_settings()

        assert settings.library == TEST_DATA / "torrent"
        assert settings.tmdb_cache == TEST_DATA / "cache_tmdb"
        assert settings.itunes_cache == TEST_DATA / "cache_itunes"
        assert settings.status_file == TEST_DATA / "status.json"
        assert settings.db_path == TEST_DATA / "mediatorr.db"
        assert settings.config_file == TEST_DATA / "config.json"

    def test_default_data_dir(self) -> None:
        settings = Settings()

        assert settings.data == Path("/data")
        assert settings.library == Path("/data/torrent")

    def test_explicit_path_wins(self, tmp_path: Path) -> None:
        settings = _create_settings(library=tmp_path / "media")

        assert settings.library == tmp_path / "media"
        assert settings.status_file == TEST_DATA / "status.json"

    def test_data_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDIATORR_DATA", "/srv/mediatorr")

        settings = Settings()

        assert settings.library == Path("/srv/mediatorr/torrent")


class TestScanCommand:
    """Tests for scan command parsing."""

    def test_default(self) -> None:
        assert _create_settings().scan_command == ["node", "/app/scene-maker.js"]

    def test_shell_string_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDIATORR_SCAN_COMMAND", "node '/opt/scan job.js' --all")

        settings = Settings()

        assert settings.scan_command == ["node", "/opt/scan job.js", "--all"]

    def test_json_list_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDIATORR_SCAN_COMMAND", '["python", "-m", "scan"]')

        settings = Settings()

        assert settings.scan_command == ["python", "-m", "scan"]

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValidationError):
            _create_settings(scan_command="")


class TestLogLevel:
    """Tests for LogLevel type validation."""

    @pytest.mark.parametrize(
        ("input_level", "expected"),
        [("debug", "DEBUG"), ("Info", "INFO"), ("WARNING", "WARNING")],
    )
    def test_normalizes_case(self, input_level: str, expected: str) -> None:
        assert _create_settings(log_level=input_level).log_level == expected

    def test_rejects_unknown(self) -> None:
        with pytest.raises(ValidationError):
            _create_settings(log_level="verbose")


class TestLimits:
    """Tests for numeric setting bounds."""

    def test_defaults(self) -> None:
        settings = _create_settings()

        assert settings.log_buffer_size == 200
        assert settings.max_event_subscribers == 50
        assert settings.sse_heartbeat_seconds == 30.0
        assert settings.status_poll_seconds == 1.0
        assert settings.stop_grace_seconds == 5.0

    @pytest.mark.parametrize(
        "field",
        ["log_buffer_size", "status_poll_seconds", "stop_grace_seconds"],
    )
    def test_rejects_zero(self, field: str) -> None:
        with pytest.raises(ValidationError):
            _create_settings(**{field: 0})

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDIATORR_STATUS_POLL_SECONDS", "0.25")

        assert Settings().status_poll_seconds == 0.25
