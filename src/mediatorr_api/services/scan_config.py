"""Config file of the scan job, as shown to and edited by the web client."""

import json
import logging
from pathlib import Path
from typing import Any

from mediatorr_api.core.enums import ReadOutcome
from mediatorr_api.core.utils import read_json_object, write_text_atomic
from mediatorr_api.exceptions import ConfigStoreError

logger = logging.getLogger(__name__)

API_KEY_FIELD = "tmdbApiKey"
MASK_CHAR = "*"
VISIBLE_KEY_CHARS = 4


def mask_secret(value: str) -> str:
    """Hide all but the last few characters of a secret.

    Secrets too short to keep a visible tail are masked entirely.

    Example:
        >>> mask_secret("abcdef123456")
        '********3456'
    """
    if len(value) <= VISIBLE_KEY_CHARS:
        return MASK_CHAR * len(value)
    hidden = len(value) - VISIBLE_KEY_CHARS
    return MASK_CHAR * hidden + value[hidden:]


def is_masked(value: Any) -> bool:
    """True for a value the client echoed back from a masked read."""
    return isinstance(value, str) and value.startswith(MASK_CHAR)


class ScanConfigStore:
    """Reads and replaces the JSON config consumed by the scan job.

    The document is free-form; only the API key gets special handling so
    it never leaves the server in clear and a masked echo never
    overwrites it.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        """Current config, or an empty one if the file is missing or corrupt."""
        result = read_json_object(self._path)
        if result.outcome is ReadOutcome.MALFORMED:
            logger.warning(
                "Ignoring unreadable config %s: %s", self._path, result.error
            )
        return result.value_or_none() or {}

    def masked(self) -> dict[str, Any]:
        config = self.load()
        key = config.get(API_KEY_FIELD)
        if isinstance(key, str) and key:
            config[API_KEY_FIELD] = mask_secret(key)
        return config

    def save(self, config: dict[str, Any]) -> None:
        """Replace the config file.

        A masked API key is swapped back for the stored one (or dropped if
        none is stored) before writing.

        Raises:
            ConfigStoreError: If the file cannot be written.
        """
        config = dict(config)
        if is_masked(config.get(API_KEY_FIELD)):
            current = self.load().get(API_KEY_FIELD)
            if current is None:
                del config[API_KEY_FIELD]
            else:
                config[API_KEY_FIELD] = current

        try:
            write_text_atomic(self._path, json.dumps(config, indent=2))
        except OSError as e:
            logger.error("Failed to save config %s: %s", self._path, e)
            raise ConfigStoreError(str(e)) from e
        logger.info("Scan config saved to %s", self._path)
