from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from typing import List, Optional
import asyncio
import logging
import os
import shutil
import uuid

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import SPLIT_UPLOAD_EXTENSION
from sanskrit_ocr.schemas import ProgressState, SplitResponse, UploadResponse
from sanskrit_ocr.services.pipeline import InputArtifact, SessionJob
from sanskrit_ocr.services.processing import ProcessingManager, get_processing_manager
from sanskrit_ocr.services.progress_store import ProgressStore, get_progress_store
from sanskrit_ocr.services.splitter import SplitError, split_pdf
from sanskrit_ocr.services.storage import create_split_directory, generate_upload_destination, save_upload
from sanskrit_ocr.utils.file_helpers import is_supported_upload, remove_quietly

logger = logging.getLogger(__name__)

router = APIRouter()


def _split_failure(status_code: int, error: str, original_filename: str = "") -> JSONResponse:
	body = SplitResponse.failure(error, original_filename=original_filename)
	return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("/upload", response_model=UploadResponse)
async def upload(
	request: Request,
	store: ProgressStore = Depends(get_progress_store),
	processing_manager: ProcessingManager = Depends(get_processing_manager),
) -> UploadResponse:
	session_id = str(uuid.uuid4())
	artifacts: List[InputArtifact] = []

	async with request.form() as form:
		saved: List[str] = []
		try:
			for _, value in form.multi_items():
				if not isinstance(value, UploadFile):
					continue
				filename = value.filename or "unnamed"
				if not is_supported_upload(filename):
					logger.info("skipping unsupported upload", extra={"session_id": session_id, "file": filename})
					continue
				path = generate_upload_destination(filename)
				saved.append(path)
				await save_upload(value, path)
				artifacts.append(InputArtifact(path=path, filename=filename))
		except Exception:
			# Disk errors fail the request and no pipeline starts
			for path in saved:
				remove_quietly(path)
			raise

	await store.write(session_id, ProgressState.queued(len(artifacts)))

	# Skip background if disabled via settings
	if not settings.DISABLE_BACKGROUND:
		await processing_manager.start()
		await processing_manager.submit(SessionJob(session_id=session_id, artifacts=artifacts))
	return UploadResponse(session_id=session_id, results=[])


@router.get("/status/{session_id}", response_model=Optional[ProgressState])
async def get_status(
	session_id: str,
	store: ProgressStore = Depends(get_progress_store),
) -> Optional[ProgressState]:
	return await store.read(session_id)


@router.post("/split", response_model=SplitResponse)
async def split(request: Request):
	async with request.form() as form:
		upload_file = next((v for _, v in form.multi_items() if isinstance(v, UploadFile)), None)
		if upload_file is None:
			return _split_failure(status.HTTP_400_BAD_REQUEST, "No file uploaded")

		filename = upload_file.filename or "unnamed.pdf"
		if not filename.lower().endswith(SPLIT_UPLOAD_EXTENSION):
			return _split_failure(status.HTTP_400_BAD_REQUEST, "Only PDF files are supported for splitting", filename)

		upload_id, split_dir = create_split_directory()
		input_path = await save_upload(upload_file, os.path.join(split_dir, "original.pdf"))

	logger.info("Analyzing PDF '%s'...", filename, extra={"upload_id": upload_id})
	try:
		outcome = await asyncio.to_thread(split_pdf, input_path, split_dir, upload_id)
	except SplitError as e:
		logger.warning("split failed", extra={"upload_id": upload_id, "error": str(e)})
		shutil.rmtree(split_dir, ignore_errors=True)
		return _split_failure(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), filename)

	return SplitResponse(
		success=True,
		original_filename=filename,
		total_pages=outcome.total_pages,
		chunks=outcome.chunks,
		error=None,
	)
