"""
Constants for the Sanskrit OCR service.
"""

# Pipeline constants
DEFAULT_MAX_CONCURRENCY = 2
DEFAULT_OCR_LANGUAGE = "san"
DEFAULT_ESTIMATE_AT_PAGE = 2
DEFAULT_PROGRESS_LOG_EVERY = 10
DEFAULT_PAGE_NAME_PADDINGS = (4, 3, 2, 1)
DEFAULT_TOOL_TIMEOUT_SECONDS = 0.0

# Split constants
DEFAULT_TARGET_CHUNK_KB = 500
CHUNK_NUMBER_WIDTH = 3

# Upload constants
SUPPORTED_UPLOAD_EXTENSIONS = (".pdf", ".png", ".jpg", ".jpeg")
SPLIT_UPLOAD_EXTENSION = ".pdf"
UPLOAD_READ_SIZE = 1024 * 1024

# Database constants
DEFAULT_DATABASE_URL = "sqlite:///./storage/progress.db"
DEFAULT_DB_POOL_SIZE = 5
DEFAULT_DB_POOL_TIMEOUT = 30.0

# Progress backends
BACKEND_MEMORY = "memory"
BACKEND_DATABASE = "database"

# Stage constants
STAGE_QUEUED = "Queued"
STAGE_CONVERTING = "Converting PDF"
STAGE_CONVERTED = "PDF Converted"
STAGE_RECOGNIZING = "OCR Processing"
STAGE_COMPLETE = "Complete"

# Recognized text page separator
PAGE_MARKER = "\n━━━ Page {page} ━━━\n"

# Storage constants
SPLITS_DIR = "./assets/conversions/splits"
PUBLIC_DIR = "./public"
DOWNLOADS_PREFIX = "/downloads"

# Server constants
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
