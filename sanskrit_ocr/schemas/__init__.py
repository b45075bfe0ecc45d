from .progress import FileResult, ProgressState, UploadResponse
from .split import ChunkInfo, SplitResponse

__all__ = [
	"FileResult",
	"ProgressState",
	"UploadResponse",
	"ChunkInfo",
	"SplitResponse",
]
