import os
import logging
import tempfile
from typing import Optional, Tuple

from dotenv import load_dotenv

from sanskrit_ocr.core import constants

load_dotenv()


def _normalize_async_database_url(raw_url: str) -> str:
	"""Convert synchronous database URLs to async ones and normalize host."""
	url = raw_url
	if url.startswith("sqlite://"):
		url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
	elif url.startswith("postgresql://"):
		url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
	# Normalize localhost -> 127.0.0.1 for asyncpg on Windows
	if url.startswith("postgresql+asyncpg://") and "@localhost:" in url:
		url = url.replace("@localhost:", "@127.0.0.1:")
	return url


def _parse_paddings(raw: str) -> Tuple[int, ...]:
	"""Parse a comma separated list of padding widths, widest first."""
	widths = {int(part) for part in raw.split(",") if part.strip()}
	if not widths or min(widths) < 1:
		raise ValueError(f"PAGE_NAME_PADDINGS must list positive widths, got: {raw!r}")
	return tuple(sorted(widths, reverse=True))


def setup_logging(level: Optional[str] = None) -> None:
	"""Setup logging configuration."""
	logging.basicConfig(
		level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
		handlers=[
			logging.StreamHandler(),
		]
	)

	# Set SQLAlchemy logging level
	logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
	logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)


class Settings:
	def __init__(self) -> None:
		raw_db = os.getenv("DATABASE_URL", constants.DEFAULT_DATABASE_URL)
		self.DATABASE_URL = _normalize_async_database_url(raw_db)
		self.PROGRESS_BACKEND = os.getenv("PROGRESS_BACKEND", constants.BACKEND_MEMORY).strip().lower()
		if self.PROGRESS_BACKEND not in (constants.BACKEND_MEMORY, constants.BACKEND_DATABASE):
			raise ValueError(f"Unknown PROGRESS_BACKEND: {self.PROGRESS_BACKEND}")

		# Sessions processed in parallel; stages inside a session stay sequential
		self.MAX_CONCURRENCY = max(1, int(os.getenv("MAX_CONCURRENCY", str(constants.DEFAULT_MAX_CONCURRENCY))))

		# External tools
		self.OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", constants.DEFAULT_OCR_LANGUAGE)
		self.PAGE_NAME_PADDINGS = _parse_paddings(
			os.getenv("PAGE_NAME_PADDINGS", ",".join(str(w) for w in constants.DEFAULT_PAGE_NAME_PADDINGS))
		)
		timeout = float(os.getenv("TOOL_TIMEOUT_SECONDS", str(constants.DEFAULT_TOOL_TIMEOUT_SECONDS)))
		self.TOOL_TIMEOUT_SECONDS: Optional[float] = timeout if timeout > 0 else None

		# Progress reporting
		self.ESTIMATE_AT_PAGE = max(2, int(os.getenv("ESTIMATE_AT_PAGE", str(constants.DEFAULT_ESTIMATE_AT_PAGE))))
		self.PROGRESS_LOG_EVERY = max(1, int(os.getenv("PROGRESS_LOG_EVERY", str(constants.DEFAULT_PROGRESS_LOG_EVERY))))

		# Splitting
		self.TARGET_CHUNK_KB = max(1, int(os.getenv("TARGET_CHUNK_KB", str(constants.DEFAULT_TARGET_CHUNK_KB))))

		# Disk layout
		self.WORK_DIR = os.getenv("WORK_DIR", tempfile.gettempdir())
		self.SPLITS_DIR = os.getenv("SPLITS_DIR", constants.SPLITS_DIR)
		self.PUBLIC_DIR = os.getenv("PUBLIC_DIR", constants.PUBLIC_DIR)
		self.DOWNLOADS_PREFIX = "/" + os.getenv("DOWNLOADS_PREFIX", constants.DOWNLOADS_PREFIX).strip("/")

		# Testing / runtime flags
		self.DISABLE_BACKGROUND = os.getenv("DISABLE_BACKGROUND", "0") == "1"
		self.HOST = os.getenv("HOST", constants.DEFAULT_HOST)
		self.PORT = int(os.getenv("PORT", str(constants.DEFAULT_PORT)))

		# Database connection settings
		self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", str(constants.DEFAULT_DB_POOL_SIZE)))
		self.DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", str(constants.DEFAULT_DB_POOL_TIMEOUT)))
		self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"


# Setup logging when module is imported
setup_logging()
settings = Settings()
