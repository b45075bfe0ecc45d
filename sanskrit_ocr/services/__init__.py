"""
Services package for the Sanskrit OCR service.
"""

from .pipeline import InputArtifact, SessionJob, SessionPipeline
from .processing import ProcessingManager, get_processing_manager
from .progress_store import (
	DatabaseProgressStore,
	InMemoryProgressStore,
	ProgressStore,
	SessionCompleteError,
	get_progress_store,
)
from .storage import save_upload

__all__ = [
	"InputArtifact",
	"SessionJob",
	"SessionPipeline",
	"ProcessingManager",
	"get_processing_manager",
	"DatabaseProgressStore",
	"InMemoryProgressStore",
	"ProgressStore",
	"SessionCompleteError",
	"get_progress_store",
	"save_upload"
]
