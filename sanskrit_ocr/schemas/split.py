from pydantic import BaseModel, Field
from typing import List, Optional


class ChunkInfo(BaseModel):
	filename: str
	page_range: str
	file_size: int
	download_path: str


class SplitResponse(BaseModel):
	success: bool
	original_filename: str = ""
	total_pages: int = 0
	chunks: List[ChunkInfo] = Field(default_factory=list)
	error: Optional[str] = None

	@classmethod
	def failure(cls, error: str, original_filename: str = "") -> "SplitResponse":
		return cls(success=False, original_filename=original_filename, error=error)
