import asyncio
import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import (
	PAGE_MARKER,
	STAGE_CONVERTED,
	STAGE_CONVERTING,
	STAGE_RECOGNIZING,
)
from sanskrit_ocr.schemas import FileResult, ProgressState
from sanskrit_ocr.services.converter import convert_pdf_to_images
from sanskrit_ocr.services.progress_store import ProgressStore
from sanskrit_ocr.services.recognizer import recognize_image
from sanskrit_ocr.services.tools import ToolError
from sanskrit_ocr.utils.file_helpers import remove_quietly

logger = logging.getLogger(__name__)

Converter = Callable[[str, str], List[str]]
Recognizer = Callable[[str], str]


@dataclass
class InputArtifact:
	"""An accepted upload saved to disk, owned by the pipeline from now on."""
	path: str
	filename: str

	@property
	def is_pdf(self) -> bool:
		return os.path.splitext(self.path)[1].lower() == ".pdf"


@dataclass
class SessionJob:
	session_id: str
	artifacts: List[InputArtifact] = field(default_factory=list)


def estimate_total_seconds(elapsed: float, completed_pages: int, total_pages: int) -> Optional[float]:
	"""Project the whole document's duration from the pages done so far.

	Only defined for documents of at least two pages with at least one page done.
	"""
	if total_pages < 2 or completed_pages < 1:
		return None
	return elapsed / completed_pages * total_pages


class SessionPipeline:
	"""Runs one upload batch: convert, recognize page by page, aggregate.

	Every milestone is published to the progress store as a full snapshot. Failures
	of a page or of a file end up in that file's result; the batch always finishes
	with exactly one terminal snapshot.
	"""

	def __init__(
		self,
		store: ProgressStore,
		converter: Converter = convert_pdf_to_images,
		recognizer: Recognizer = recognize_image,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.store = store
		self.converter = converter
		self.recognizer = recognizer
		self.clock = clock

	async def run(self, job: SessionJob) -> List[FileResult]:
		results: List[FileResult] = []
		file_count = len(job.artifacts)
		for position, artifact in enumerate(job.artifacts, start=1):
			logger.info(
				"processing file", extra={"session_id": job.session_id, "file": artifact.filename, "position": position, "files": file_count}
			)
			try:
				result = await self._process_artifact(job.session_id, artifact)
			except Exception as e:
				logger.exception("file failed", extra={"session_id": job.session_id, "file": artifact.filename})
				result = FileResult.failure(artifact.filename, f"Processing failed: {e}")
			finally:
				remove_quietly(artifact.path)
			results.append(result)

		await self.store.write(job.session_id, ProgressState.completed(results))
		logger.info("session complete", extra={"session_id": job.session_id, "files": file_count})
		return results

	async def _publish(self, session_id: str, stage: str, current: int, total: int, message: str) -> None:
		await self.store.write(session_id, ProgressState(stage=stage, current=current, total=total, message=message))

	async def _process_artifact(self, session_id: str, artifact: InputArtifact) -> FileResult:
		if artifact.is_pdf:
			return await self._process_document(session_id, artifact)
		return await self._process_image(session_id, artifact)

	async def _process_document(self, session_id: str, artifact: InputArtifact) -> FileResult:
		await self._publish(session_id, STAGE_CONVERTING, 0, 0, f"Converting PDF '{artifact.filename}'...")
		work_dir = await asyncio.to_thread(tempfile.mkdtemp, prefix="pdf_convert_", dir=settings.WORK_DIR)
		try:
			try:
				pages = await asyncio.to_thread(self.converter, artifact.path, work_dir)
			except ToolError as e:
				logger.warning("conversion failed", extra={"session_id": session_id, "file": artifact.filename, "error": str(e)})
				return FileResult.failure(artifact.filename, str(e))

			total_pages = len(pages)
			await self._publish(session_id, STAGE_CONVERTED, 0, total_pages, f"Converted {total_pages} pages, starting OCR...")
			return await self._recognize_pages(session_id, artifact, pages)
		finally:
			await asyncio.to_thread(shutil.rmtree, work_dir, True)

	async def _recognize_pages(self, session_id: str, artifact: InputArtifact, pages: List[str]) -> FileResult:
		total_pages = len(pages)
		logger.info("Processing %d pages with %s OCR", total_pages, settings.OCR_LANGUAGE, extra={"session_id": session_id})

		estimate: Optional[float] = None
		text_parts: List[str] = []
		start_time = self.clock()

		for index, page_path in enumerate(pages, start=1):
			if index == settings.ESTIMATE_AT_PAGE and estimate is None:
				estimate = estimate_total_seconds(self.clock() - start_time, index - 1, total_pages)
				if estimate is not None:
					logger.info(
						"Estimated total time: %.1fs (%.1f minutes)", estimate, estimate / 60.0,
						extra={"session_id": session_id, "remaining_pages": total_pages - index + 1},
					)

			message = f"Processing page {index}/{total_pages}"
			if estimate is not None:
				message += f" (estimated total {estimate:.0f}s)"
			# published before the worker runs so pollers see the counter move first
			await self._publish(session_id, STAGE_RECOGNIZING, index, total_pages, message)

			try:
				text = await asyncio.to_thread(self.recognizer, page_path)
			except ToolError as e:
				logger.warning("Failed to OCR page %d: %s", index, e, extra={"session_id": session_id, "file": artifact.filename})
				continue
			if text:
				text_parts.append(PAGE_MARKER.format(page=index) + text)

			if index % settings.PROGRESS_LOG_EVERY == 0 and index < total_pages:
				elapsed = self.clock() - start_time
				avg = elapsed / index
				remaining = (total_pages - index) * avg
				logger.info("Avg: %.1fs/page | Remaining: ~%.1fs (%.1f min)", avg, remaining, remaining / 60.0, extra={"session_id": session_id})

		total_time = self.clock() - start_time
		text = "".join(text_parts).strip()
		logger.info(
			"OCR completed for '%s': %d total characters in %.1fs", artifact.filename, len(text), total_time,
			extra={"session_id": session_id},
		)
		return FileResult(
			filename=artifact.filename,
			text=text,
			success=True,
			pages_processed=total_pages,
			total_pages=total_pages,
			estimated_time_seconds=total_time,
		)

	async def _process_image(self, session_id: str, artifact: InputArtifact) -> FileResult:
		await self._publish(session_id, STAGE_RECOGNIZING, 1, 1, f"Processing '{artifact.filename}'")
		start_time = self.clock()
		try:
			text = await asyncio.to_thread(self.recognizer, artifact.path)
		except ToolError as e:
			logger.warning("OCR failed", extra={"session_id": session_id, "file": artifact.filename, "error": str(e)})
			return FileResult.failure(artifact.filename, str(e))

		processing_time = self.clock() - start_time
		logger.info(
			"OCR Success for '%s': %d chars extracted in %.1fs", artifact.filename, len(text), processing_time,
			extra={"session_id": session_id},
		)
		return FileResult(
			filename=artifact.filename,
			text=text,
			success=True,
			pages_processed=1,
			total_pages=1,
			estimated_time_seconds=processing_time,
		)
