"""
File handling utilities.
"""
import logging
import os
from pathlib import Path

from sanskrit_ocr.core.constants import SUPPORTED_UPLOAD_EXTENSIONS

logger = logging.getLogger(__name__)


def ensure_storage_dir(directory: str) -> str:
    """
    Ensure storage directory exists.

    Args:
        directory: Directory path

    Returns:
        Absolute path to directory
    """
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return str(path.absolute())


def is_supported_upload(filename: str, extensions=SUPPORTED_UPLOAD_EXTENSIONS) -> bool:
    """Case-insensitive check of the filename extension."""
    return filename.lower().endswith(tuple(extensions))


def get_extension(filename: str, default: str = "tmp") -> str:
    """Return the text after the last dot, without the dot."""
    _, dot, ext = filename.rpartition(".")
    return ext if dot and ext else default


def remove_quietly(path: str) -> None:
    """Delete a file, logging instead of raising when it is already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("failed to delete file", extra={"path": path, "error": str(e)})
