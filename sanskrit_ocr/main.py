"""
Main FastAPI application for the Sanskrit OCR service.
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sanskrit_ocr import __version__
from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import BACKEND_DATABASE
from sanskrit_ocr.api import router as api_router
from sanskrit_ocr.db.session import engine
from sanskrit_ocr.middleware import LoggingMiddleware
from sanskrit_ocr.services import get_processing_manager
from sanskrit_ocr.services.progress_store import create_tables
from sanskrit_ocr.services.storage import ensure_directories

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Sanskrit OCR server at http://%s:%s", settings.HOST, settings.PORT)

    ensure_directories()
    if settings.PROGRESS_BACKEND == BACKEND_DATABASE:
        await create_db_and_tables()

    # Start processing manager
    processing_manager = get_processing_manager()
    await processing_manager.start()

    logger.info("Application startup completed successfully!")

    yield

    # Shutdown
    logger.info("Shutting down Sanskrit OCR server...")

    # Running sessions are abandoned; there is no cancellation or resume
    await processing_manager.stop()

    if settings.PROGRESS_BACKEND == BACKEND_DATABASE:
        await engine.dispose()

    logger.info("Application shutdown completed successfully!")


async def create_db_and_tables():
    """Create the progress table if it doesn't exist, retrying while the database comes up."""
    max_retries = 10
    base_delay = 0.5

    for attempt in range(max_retries):
        try:
            await create_tables()
            logger.info("Progress table created and connectivity verified!")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                delay = min(3.0, base_delay * (2 ** attempt))
                logger.warning(f"Failed to create tables/connect (attempt {attempt + 1}/{max_retries}): {e}. Retrying in {delay:.1f}s...")
                await asyncio.sleep(delay)
            else:
                logger.error(f"Failed to initialize database after {max_retries} attempts: {e}")
                raise


# Create FastAPI application
app = FastAPI(
    title="Sanskrit OCR",
    description="OCR for uploaded images and PDFs, with PDF splitting and progress polling",
    version=__version__,
    lifespan=lifespan
)

# Add middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Static mounts go last so API routes win
app.mount(settings.DOWNLOADS_PREFIX, StaticFiles(directory=settings.SPLITS_DIR, check_dir=False), name="downloads")
if os.path.isdir(settings.PUBLIC_DIR):
    app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR, html=True), name="public")


def run() -> None:
    """Console entry point: bind the configured host and port until terminated."""
    uvicorn.run("sanskrit_ocr.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
