"""
Middleware package for the Sanskrit OCR service.
"""

from .logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware"
]
