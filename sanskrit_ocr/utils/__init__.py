"""
Utility functions for the Sanskrit OCR service.
"""

from .parsing import extract_field, extract_int_field, excerpt
from .file_helpers import ensure_storage_dir, is_supported_upload, remove_quietly

__all__ = [
    "extract_field",
    "extract_int_field",
    "excerpt",
    "ensure_storage_dir",
    "is_supported_upload",
    "remove_quietly"
]
