"""
Sanskrit OCR service: OCR uploads, PDF splitting and progress polling.
"""

__version__ = "1.0.0"
