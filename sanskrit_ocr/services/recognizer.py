import logging
import os
import uuid
from typing import Optional

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.services.tools import ToolError, ToolNotFoundError, run_tool
from sanskrit_ocr.utils.file_helpers import remove_quietly

logger = logging.getLogger(__name__)


def recognize_image(image_path: str, language: Optional[str] = None) -> str:
	"""Run tesseract on one image and return the trimmed text (possibly empty)."""
	language = language or settings.OCR_LANGUAGE
	output_base = os.path.join(settings.WORK_DIR, f"ocr_output_{uuid.uuid4()}")
	txt_file = f"{output_base}.txt"

	try:
		result = run_tool("tesseract", [image_path, output_base, "-l", language])
	except ToolNotFoundError as e:
		raise ToolError(f"Failed to execute tesseract: {e.reason}. Make sure tesseract is installed.") from e

	try:
		if not result.ok:
			raise ToolError(f"Tesseract error: {result.stderr_excerpt}")
		try:
			with open(txt_file, "r", encoding="utf-8", errors="replace") as f:
				text = f.read()
		except OSError as e:
			raise ToolError(f"Failed to read OCR output: {e}") from e
	finally:
		remove_quietly(txt_file)

	text = text.strip()
	if not text:
		logger.warning("Empty text extracted", extra={"image": image_path})
	return text
