import asyncio

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sanskrit_ocr.db.session import Base
from sanskrit_ocr.schemas import FileResult, ProgressState
from sanskrit_ocr.services.progress_store import (
	DatabaseProgressStore,
	InMemoryProgressStore,
	SessionCompleteError,
	create_tables,
)


@pytest.fixture
async def database_store(tmp_path):
	"""DatabaseProgressStore backed by a throwaway SQLite file."""
	test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'progress.db'}", echo=False)
	async with test_engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)
	factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
	yield DatabaseProgressStore(factory)
	await test_engine.dispose()


@pytest.fixture(params=["memory", "database"])
async def any_store(request, database_store):
	if request.param == "memory":
		return InMemoryProgressStore()
	return database_store


@pytest.mark.asyncio
async def test_unknown_session_reads_none(any_store):
	assert await any_store.read("missing") is None


@pytest.mark.asyncio
async def test_write_replaces_whole_snapshot(any_store):
	await any_store.write("s1", ProgressState.queued(2))
	await any_store.write("s1", ProgressState(stage="OCR Processing", current=3, total=7, message="Processing page 3/7"))

	state = await any_store.read("s1")
	assert state.stage == "OCR Processing"
	assert (state.current, state.total) == (3, 7)
	assert state.message == "Processing page 3/7"
	assert state.complete is False
	assert state.results == ()


@pytest.mark.asyncio
async def test_complete_snapshot_is_final(any_store):
	results = [
		FileResult(filename="a.png", text="नमः", success=True, pages_processed=1, total_pages=1, estimated_time_seconds=0.5),
		FileResult.failure("b.pdf", "PDF conversion failed: no output files created"),
	]
	await any_store.write("s1", ProgressState.queued(2))
	await any_store.write("s1", ProgressState.completed(results))

	with pytest.raises(SessionCompleteError):
		await any_store.write("s1", ProgressState(stage="OCR Processing", current=1, total=1))

	state = await any_store.read("s1")
	assert state.complete is True
	assert [r.filename for r in state.results] == ["a.png", "b.pdf"]
	assert state.results[0].text == "नमः"
	assert state.results[1].success is False
	assert state.results[1].error == "PDF conversion failed: no output files created"


@pytest.mark.asyncio
async def test_repeated_reads_after_completion_are_identical(any_store):
	await any_store.write("s1", ProgressState.completed([FileResult(filename="a.png", success=True)]))
	first = await any_store.read("s1")
	second = await any_store.read("s1")
	assert first == second


@pytest.mark.asyncio
async def test_sessions_are_independent():
	store = InMemoryProgressStore()

	async def drive(session_id: str) -> None:
		for page in range(1, 21):
			await store.write(session_id, ProgressState(stage="OCR Processing", current=page, total=20))
			await asyncio.sleep(0)
		await store.write(session_id, ProgressState.completed([]))

	await asyncio.gather(*(drive(f"s{i}") for i in range(10)))

	assert len(store) == 10
	for i in range(10):
		state = await store.read(f"s{i}")
		assert state.complete is True


def test_snapshots_are_immutable():
	state = ProgressState.queued(1)
	with pytest.raises(ValidationError):
		state.current = 5


@pytest.mark.asyncio
async def test_create_tables_makes_missing_sqlite_directory(tmp_path):
	db_path = tmp_path / "storage" / "nested" / "progress.db"
	test_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=False)
	try:
		await create_tables(test_engine)
		store = DatabaseProgressStore(async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False))
		await store.write("s1", ProgressState.queued(1))
		assert (await store.read("s1")).stage == "Queued"
	finally:
		await test_engine.dispose()

	assert db_path.exists()
