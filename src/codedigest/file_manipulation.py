from __future__ import annotations

import math
from datetime import UTC, datetime
from pathlib import Path

from codedigest import config
from codedigest.config import TEXT_EXTENSIONS
from codedigest.exceptions import PatternFileNotFoundError
from codedigest.logging import logger

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path).replace("\\", "/")


def now_iso() -> str:
    """Return the current UTC date and time in ISO 8601 format.

    Returns:
        str: the current date and time, e.g. ``2024-01-01T12:00:00.000000+00:00``
    """
    return datetime.now(UTC).isoformat()


def format_bytes(size: int, decimals: int = 2) -> str:
    """Format a number of bytes as a human-readable string.

    Args:
        size (int): the number of bytes
        decimals (int): number of decimal places to keep

    Returns:
        str: e.g. "0 Bytes", "512 Bytes", "1.5 KB", "10 MB"
    """
    if size <= 0:
        return "0 Bytes"
    idx = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size / 1024**idx, max(0, decimals))
    return f"{value:g} {_SIZE_UNITS[idx]}"


def contains_null_byte(path: Path, chunk_size: int | None = None) -> bool:
    """Scan a file for a NUL byte, one chunk at a time.

    Args:
        path (Path): the file to scan
        chunk_size (int | None): bytes read per iteration, defaults to `CHUNK_SIZE`

    Raises:
        OSError: if the file cannot be opened or read

    Returns:
        bool: True as soon as a NUL byte is found
    """
    size = chunk_size or config.CHUNK_SIZE
    with path.open("rb") as f:
        return any(b"\x00" in blk for blk in iter(lambda: f.read(size), b""))


def is_text_file(path: Path) -> bool:
    """Check if a file is probably text.

    Known source and text extensions are accepted without reading the file; anything
    else is text when it holds no NUL byte. Unreadable files are not text.

    Args:
        path (Path): the file path to check

    Returns:
        bool: True if the file is probably text, False otherwise
    """
    if path.suffix.lower() in TEXT_EXTENSIONS:
        return True
    try:
        return not contains_null_byte(path)
    except OSError as e:
        logger.error("text_check_failed", path=str(path), error=str(e))
        return False


def read_text(path: Path, size: int) -> str:
    """Read a file already known to be text, in `CHUNK_SIZE` pieces above that size.

    Raises:
        OSError: if the file cannot be read
    """
    chunk = config.CHUNK_SIZE
    with path.open("r", encoding="utf-8", errors="replace", newline="") as f:
        if size <= chunk:
            return f.read()
        return "".join(iter(lambda: f.read(chunk), ""))


def load_patterns_from_file(path: Path, kind: str = "Pattern") -> list[str]:
    """Load glob patterns from a text file.

    One pattern per line; lines are stripped, and blank lines and `#` comments dropped.

    Args:
        path (Path): the pattern file
        kind (str): label used in error messages ("Ignore", "Include")

    Raises:
        PatternFileNotFoundError: if the file does not exist

    Returns:
        list[str]: the patterns in file order
    """
    if not path.is_file():
        raise PatternFileNotFoundError(path=path, kind=kind)
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    return [s for s in (ln.strip() for ln in lines) if s and not s.startswith("#")]
