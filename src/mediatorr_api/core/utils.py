"""Name validation, best-effort file readers and atomic writes."""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from mediatorr_api.core.types import ReadResult

_WHITESPACE_RUN = re.compile(r"\s+")
_SAFE_FILENAME = re.compile(r"^[A-Za-z0-9._-]+$")


def safe_cache_name(name: str) -> str:
    """Convert a media name to its cache key (dots, lowercase).

    Example:
        >>> safe_cache_name("The Matrix  1999")
        'the.matrix.1999'
    """
    return _WHITESPACE_RUN.sub(".", name).lower()


def is_safe_name(name: str) -> bool:
    """Check that a media name addresses exactly one library folder."""
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\0" in name:
        return False
    return ".." not in name


def is_safe_filename(filename: str) -> bool:
    """Check a filename against the allow-list used for raw file reads."""
    return bool(_SAFE_FILENAME.match(filename))


def read_text(path: Path) -> ReadResult[str]:
    """Read a UTF-8 text file without raising."""
    try:
        return ReadResult.present(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ReadResult.absent()
    except (OSError, UnicodeDecodeError) as e:
        return ReadResult.malformed(str(e))


def read_json_object(path: Path) -> ReadResult[dict[str, Any]]:
    """Read a JSON object from disk without raising.

    Anything other than a JSON object is reported as malformed.
    """
    text = read_text(path)
    if not text.is_present:
        return ReadResult(text.outcome, error=text.error)
    try:
        data = json.loads(text.value or "")
    except json.JSONDecodeError as e:
        return ReadResult.malformed(str(e))
    if not isinstance(data, dict):
        kind = type(data).__name__
        return ReadResult.malformed(f"expected a JSON object, got {kind}")
    return ReadResult.present(data)


def write_text_atomic(path: Path, text: str) -> None:
    """Replace a file so readers never see a partial write.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
