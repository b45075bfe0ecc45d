import logging
import math
import os
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import CHUNK_NUMBER_WIDTH
from sanskrit_ocr.schemas import ChunkInfo
from sanskrit_ocr.services.tools import ToolError, ToolNotFoundError, run_tool
from sanskrit_ocr.utils.parsing import extract_int_field

logger = logging.getLogger(__name__)

PAGE_COUNT_FIELD = "NumberOfPages"


class SplitError(ToolError):
	"""The source PDF cannot be split at all."""


@dataclass
class SplitOutcome:
	total_pages: int
	pages_per_chunk: int
	chunks: List[ChunkInfo] = field(default_factory=list)


def read_page_count(pdf_path: str) -> int:
	try:
		result = run_tool("pdftk", [pdf_path, "dump_data"])
	except ToolNotFoundError as e:
		raise SplitError("pdftk not found. Please install: sudo apt install pdftk") from e
	except ToolError as e:
		raise SplitError(f"Failed to analyze PDF with pdftk: {e}") from e
	if not result.ok:
		raise SplitError("Failed to analyze PDF with pdftk. Make sure pdftk is installed.")

	total_pages = extract_int_field(result.stdout_text, PAGE_COUNT_FIELD)
	if not total_pages:
		raise SplitError("Could not determine PDF page count")
	return total_pages


def compute_pages_per_chunk(file_size_bytes: int, total_pages: int, target_kb: int) -> int:
	"""Pages that fit in ``target_kb`` assuming every page weighs the same.

	The estimate per page is floored at 1 KB, and the result is clamped to
	``[1, total_pages]``.
	"""
	if total_pages < 1:
		raise ValueError("total_pages must be positive")
	file_size_kb = file_size_bytes // 1024
	estimated_kb_per_page = max(file_size_kb / total_pages, 1.0)
	pages_per_chunk = math.floor(target_kb / estimated_kb_per_page)
	return min(max(pages_per_chunk, 1), total_pages)


def iter_page_ranges(total_pages: int, pages_per_chunk: int) -> Iterator[Tuple[int, int]]:
	current_page = 1
	while current_page <= total_pages:
		end_page = min(current_page + pages_per_chunk - 1, total_pages)
		yield current_page, end_page
		current_page = end_page + 1


def chunk_filename(chunk_num: int, start_page: int, end_page: int, width: int = CHUNK_NUMBER_WIDTH) -> str:
	return f"chunk_{chunk_num:0{width}d}_pages_{start_page}-{end_page}.pdf"


def split_pdf(input_path: str, output_dir: str, upload_id: str, target_kb: Optional[int] = None) -> SplitOutcome:
	"""Cut ``input_path`` into chunk PDFs of roughly ``target_kb`` each.

	Chunks that pdftk fails to write are logged and left out of the outcome;
	the remaining ranges are still attempted.
	"""
	target_kb = target_kb or settings.TARGET_CHUNK_KB
	total_pages = read_page_count(input_path)
	pages_per_chunk = compute_pages_per_chunk(os.path.getsize(input_path), total_pages, target_kb)
	logger.info(
		"Splitting %d pages into chunks of ~%d pages each...", total_pages, pages_per_chunk,
		extra={"upload_id": upload_id, "total_pages": total_pages, "pages_per_chunk": pages_per_chunk},
	)

	ranges = list(iter_page_ranges(total_pages, pages_per_chunk))
	# Chunk numbers share one width so names sort in page order
	width = max(CHUNK_NUMBER_WIDTH, len(str(len(ranges))))

	outcome = SplitOutcome(total_pages=total_pages, pages_per_chunk=pages_per_chunk)
	for chunk_num, (start_page, end_page) in enumerate(ranges, start=1):
		name = chunk_filename(chunk_num, start_page, end_page, width)
		chunk_path = os.path.join(output_dir, name)
		logger.debug("Creating chunk %d: pages %d-%d", chunk_num, start_page, end_page)

		try:
			result = run_tool("pdftk", [input_path, "cat", f"{start_page}-{end_page}", "output", chunk_path])
		except ToolError as e:
			logger.warning("Failed to create chunk %d: %s", chunk_num, e, extra={"upload_id": upload_id})
			continue
		if not result.ok or not os.path.exists(chunk_path):
			logger.warning("Failed to create chunk %d", chunk_num, extra={"upload_id": upload_id})
			continue

		outcome.chunks.append(ChunkInfo(
			filename=name,
			page_range=f"{start_page}-{end_page}",
			file_size=os.path.getsize(chunk_path),
			download_path=f"{settings.DOWNLOADS_PREFIX}/{upload_id}/{name}",
		))

	logger.info("Split complete: %d chunks created", len(outcome.chunks), extra={"upload_id": upload_id})
	return outcome
