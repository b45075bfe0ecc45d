import os

from typing import Union

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sanskrit_ocr.core.config import settings

# Create declarative base
Base = declarative_base()


def ensure_sqlite_directory(database_url: Union[str, URL]) -> None:
	"""Create the parent directory of a file-backed SQLite database."""
	url = make_url(database_url)
	if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
		return
	parent = os.path.dirname(url.database)
	if parent:
		os.makedirs(parent, exist_ok=True)


def build_engine(database_url: str):
	"""Create an async engine with settings suited to the database type."""
	if database_url.startswith("sqlite"):
		# Progress rows are tiny; one connection keeps SQLite writes serialized
		return create_async_engine(
			database_url,
			echo=settings.DB_ECHO,
			pool_size=1,
			max_overflow=0,
			pool_timeout=settings.DB_POOL_TIMEOUT,
			connect_args={
				"timeout": 30.0,
				"check_same_thread": False,
			}
		)
	return create_async_engine(
		database_url,
		echo=settings.DB_ECHO,
		pool_size=settings.DB_POOL_SIZE,
		max_overflow=0,
		pool_timeout=settings.DB_POOL_TIMEOUT,
		pool_pre_ping=True,
		connect_args={
			"server_settings": {
				"application_name": "sanskrit_ocr",
			},
			"command_timeout": 60,
		}
	)


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
	engine, class_=AsyncSession, expire_on_commit=False
)
