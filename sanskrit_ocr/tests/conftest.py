import os
from typing import List, Tuple

import pytest

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.schemas import ProgressState
from sanskrit_ocr.services.progress_store import InMemoryProgressStore
from sanskrit_ocr.services.tools import ToolResult


class RecordingProgressStore(InMemoryProgressStore):
	"""In-memory store that also keeps every snapshot written, in order."""

	def __init__(self) -> None:
		super().__init__()
		self.history: List[Tuple[str, ProgressState]] = []

	async def write(self, session_id: str, state: ProgressState) -> None:
		await super().write(session_id, state)
		self.history.append((session_id, state))

	def states_for(self, session_id: str) -> List[ProgressState]:
		return [state for sid, state in self.history if sid == session_id]


class FakeClock:
	"""Advances one second per call."""

	def __init__(self) -> None:
		self.now = 0.0

	def __call__(self) -> float:
		self.now += 1.0
		return self.now


def tool_result(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> ToolResult:
	return ToolResult(("fake",), returncode, stdout, stderr)


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
	"""Point temporary artifacts and split output at the test's tmp_path."""
	work = tmp_path / "work"
	splits = tmp_path / "splits"
	work.mkdir()
	splits.mkdir()
	monkeypatch.setattr(settings, "WORK_DIR", str(work))
	monkeypatch.setattr(settings, "SPLITS_DIR", str(splits))
	return work


@pytest.fixture
def store():
	return RecordingProgressStore()


@pytest.fixture
def clock():
	return FakeClock()


def make_upload(directory, name: str, content: bytes = b"data") -> str:
	path = os.path.join(str(directory), name)
	with open(path, "wb") as f:
		f.write(content)
	return path
