import asyncio
import logging
from typing import Optional

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.services.pipeline import SessionJob, SessionPipeline
from sanskrit_ocr.services.progress_store import get_progress_store

logger = logging.getLogger(__name__)


class ProcessingManager:
	"""Pool of worker tasks draining a FIFO queue of session jobs.

	A submitted job is never cancelled; ``stop`` only cancels idle or running workers
	when the application shuts down.
	"""

	def __init__(self, pipeline: Optional[SessionPipeline] = None, concurrency: Optional[int] = None) -> None:
		self.pipeline = pipeline
		self.queue = None  # Will be created lazily
		self.concurrency = concurrency or settings.MAX_CONCURRENCY
		self.workers: list[asyncio.Task] = []
		self._started = False

	def _ensure_initialized(self):
		"""Ensure queue and pipeline are initialized in the current event loop."""
		if self.queue is None:
			self.queue = asyncio.Queue()
		if self.pipeline is None:
			self.pipeline = SessionPipeline(get_progress_store())

	async def start(self) -> None:
		if self._started:
			return
		self._ensure_initialized()
		self._started = True
		for _ in range(self.concurrency):
			self.workers.append(asyncio.create_task(self._worker_loop()))
		logger.info("processing workers started", extra={"workers": self.concurrency})

	async def stop(self) -> None:
		for w in self.workers:
			w.cancel()
		self.workers.clear()
		self._started = False

	async def submit(self, job: SessionJob) -> None:
		self._ensure_initialized()
		await self.queue.put(job)
		logger.info("session queued", extra={"session_id": job.session_id, "files": len(job.artifacts)})

	async def join(self) -> None:
		"""Wait until every submitted job has finished."""
		self._ensure_initialized()
		await self.queue.join()

	async def _worker_loop(self) -> None:
		while True:
			try:
				job = await self.queue.get()
			except asyncio.CancelledError:
				break
			try:
				await self.pipeline.run(job)
			except asyncio.CancelledError:
				break
			except Exception as e:
				logger.exception("worker error", extra={"session_id": job.session_id, "error": str(e)})
			finally:
				self.queue.task_done()


# Create a global instance that will be initialized lazily
_processing_manager = None


def get_processing_manager() -> ProcessingManager:
	"""Get the global processing manager instance, creating it if necessary."""
	global _processing_manager
	if _processing_manager is None:
		_processing_manager = ProcessingManager()
	return _processing_manager
