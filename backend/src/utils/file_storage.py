"""
Local file storage for generated submission documents.
"""

import logging
import os
import re
import tempfile
import unicodedata
from typing import Optional

from core.config import PDF_STORAGE_DIR

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename_part(value: Optional[str], fallback: str = "unknown") -> str:
    """
    Reduce a name to filesystem-safe ASCII.

    Accents are stripped ('Müller' -> 'Muller'), any other run of unsafe
    characters becomes a single underscore.
    """
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    cleaned = _UNSAFE_CHARS.sub("_", normalized).strip("._")
    return cleaned or fallback


def save_file(content: bytes, filename: str, directory: Optional[str] = None) -> str:
    """
    Write a file and return its path.

    The content is written to a temporary file first and moved into place,
    so a failed write never leaves a partial file under `filename`.
    """
    directory = directory or PDF_STORAGE_DIR
    os.makedirs(directory, exist_ok=True)
    target = os.path.join(directory, filename)

    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as out_file:
            out_file.write(content)
        os.replace(tmp_path, target)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info(f"Stored file {target} ({len(content)} bytes)")
    return target


def read_file(path: str) -> Optional[bytes]:
    """Read a stored file, or None if it no longer exists."""
    if not os.path.exists(path):
        return None
    with open(path, "rb") as in_file:
        return in_file.read()


def delete_file(path: str) -> None:
    """Delete a stored file. Missing files are ignored."""
    if not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError as e:
        # Log but don't fail if delete fails
        logger.warning(f"Failed to delete file {path}: {e}")
