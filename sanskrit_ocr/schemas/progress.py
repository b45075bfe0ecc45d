from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Sequence, Tuple

from sanskrit_ocr.core.constants import STAGE_COMPLETE, STAGE_QUEUED


class FileResult(BaseModel):
	model_config = ConfigDict(frozen=True)

	filename: str
	text: str = ""
	success: bool
	error: Optional[str] = None
	pages_processed: Optional[int] = None
	total_pages: Optional[int] = None
	estimated_time_seconds: Optional[float] = None

	@classmethod
	def failure(cls, filename: str, error: str) -> "FileResult":
		return cls(filename=filename, text="", success=False, error=error)


class ProgressState(BaseModel):
	"""One immutable snapshot of a session's progress, replaced as a whole on every update."""

	model_config = ConfigDict(frozen=True)

	stage: str
	current: int = Field(0, ge=0)
	total: int = Field(0, ge=0)
	message: str = ""
	complete: bool = False
	results: Tuple[FileResult, ...] = ()

	@classmethod
	def queued(cls, file_count: int) -> "ProgressState":
		return cls(
			stage=STAGE_QUEUED,
			current=0,
			total=file_count,
			message=f"Queued {file_count} file(s) for processing",
		)

	@classmethod
	def completed(cls, results: Sequence[FileResult]) -> "ProgressState":
		return cls(
			stage=STAGE_COMPLETE,
			current=len(results),
			total=len(results),
			message="Processing complete",
			complete=True,
			results=tuple(results),
		)


class UploadResponse(BaseModel):
	session_id: str
	results: List[FileResult] = Field(default_factory=list)
