import logging
import threading
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import BACKEND_DATABASE
from sanskrit_ocr.db.models import ProgressSnapshot
from sanskrit_ocr.db.session import AsyncSessionLocal, Base, engine, ensure_sqlite_directory
from sanskrit_ocr.schemas import FileResult, ProgressState

logger = logging.getLogger(__name__)


class SessionCompleteError(RuntimeError):
	def __init__(self, session_id: str) -> None:
		super().__init__(f"session {session_id} already reached its terminal state")
		self.session_id = session_id


class ProgressStore:
	"""Latest ProgressState per session id.

	``write`` replaces the whole snapshot of one session; readers always see either
	the previous or the new snapshot. A complete snapshot is final.
	"""

	async def read(self, session_id: str) -> Optional[ProgressState]:
		raise NotImplementedError

	async def write(self, session_id: str, state: ProgressState) -> None:
		raise NotImplementedError


class InMemoryProgressStore(ProgressStore):
	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._data: Dict[str, ProgressState] = {}

	async def read(self, session_id: str) -> Optional[ProgressState]:
		with self._lock:
			return self._data.get(session_id)

	async def write(self, session_id: str, state: ProgressState) -> None:
		with self._lock:
			previous = self._data.get(session_id)
			if previous is not None and previous.complete:
				raise SessionCompleteError(session_id)
			self._data[session_id] = state

	def __len__(self) -> int:
		with self._lock:
			return len(self._data)


class DatabaseProgressStore(ProgressStore):
	"""One row per session; each write replaces the row inside a single transaction."""

	def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
		self.session_factory = session_factory or AsyncSessionLocal

	async def read(self, session_id: str) -> Optional[ProgressState]:
		async with self.session_factory() as session:
			row = await session.get(ProgressSnapshot, session_id)
			if row is None:
				return None
			return ProgressState(
				stage=row.stage,
				current=row.current,
				total=row.total,
				message=row.message,
				complete=row.complete,
				results=tuple(FileResult.model_validate(r) for r in row.results or []),
			)

	async def write(self, session_id: str, state: ProgressState) -> None:
		async with self.session_factory() as session:
			async with session.begin():
				row = await session.get(ProgressSnapshot, session_id, with_for_update=True)
				if row is None:
					row = ProgressSnapshot(session_id=session_id)
					session.add(row)
				elif row.complete:
					raise SessionCompleteError(session_id)
				self._apply(row, state)

	@staticmethod
	def _apply(row, state: ProgressState) -> None:
		row.stage = state.stage
		row.current = state.current
		row.total = state.total
		row.message = state.message
		row.complete = state.complete
		row.results = [r.model_dump() for r in state.results]


async def create_tables(target: Optional[AsyncEngine] = None) -> None:
	"""Create the progress table when the database backend is in use."""
	if target is None:
		target = engine
	ensure_sqlite_directory(target.url)
	async with target.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


# Create a global instance that will be initialized lazily
_progress_store = None


def get_progress_store() -> ProgressStore:
	"""Get the global progress store, creating it if necessary."""
	global _progress_store
	if _progress_store is None:
		if settings.PROGRESS_BACKEND == BACKEND_DATABASE:
			_progress_store = DatabaseProgressStore()
		else:
			_progress_store = InMemoryProgressStore()
		logger.info("progress store ready", extra={"backend": settings.PROGRESS_BACKEND})
	return _progress_store
