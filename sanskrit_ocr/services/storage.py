import os
import uuid

from starlette.datastructures import UploadFile

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.core.constants import UPLOAD_READ_SIZE
from sanskrit_ocr.utils.file_helpers import ensure_storage_dir, get_extension


def ensure_directories() -> None:
	ensure_storage_dir(settings.WORK_DIR)
	ensure_storage_dir(settings.SPLITS_DIR)


def generate_upload_destination(original_filename: str) -> str:
	file_id = str(uuid.uuid4())
	ext = get_extension(os.path.basename(original_filename))
	return os.path.join(settings.WORK_DIR, f"ocr_{file_id}.{ext}")


def create_split_directory() -> tuple[str, str]:
	upload_id = str(uuid.uuid4())
	split_dir = os.path.join(settings.SPLITS_DIR, upload_id)
	os.makedirs(split_dir, exist_ok=True)
	return upload_id, split_dir


async def save_upload(file: UploadFile, dst_path: str) -> str:
	# Streaming save to disk
	with open(dst_path, "wb") as out:
		while True:
			chunk = await file.read(UPLOAD_READ_SIZE)
			if not chunk:
				break
			out.write(chunk)

	return dst_path
