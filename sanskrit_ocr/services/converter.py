import logging
import os
from typing import Callable, List, Sequence

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.services.tools import ToolError, ToolNotFoundError, run_tool

logger = logging.getLogger(__name__)

PAGE_PREFIX = "page"


def discover_page_files(
	prefix: str,
	paddings: Sequence[int],
	exists: Callable[[str], bool] = os.path.exists,
) -> List[str]:
	"""Find ``<prefix>-<n>.png`` files for n = 1, 2, ... in page order.

	pdftoppm zero-pads page numbers to a width that depends on the document, so each
	index is probed with every padding width, widest first. Discovery stops at the
	first index for which no candidate exists.
	"""
	pages: List[str] = []
	page_num = 1
	while True:
		for width in paddings:
			candidate = f"{prefix}-{page_num:0{width}d}.png"
			if exists(candidate):
				pages.append(candidate)
				break
		else:
			return pages
		page_num += 1


def convert_pdf_to_images(source_path: str, output_dir: str) -> List[str]:
	"""Rasterize every page of ``source_path`` into PNGs inside ``output_dir``."""
	prefix = os.path.join(output_dir, PAGE_PREFIX)
	try:
		result = run_tool("pdftoppm", ["-png", source_path, prefix])
	except ToolNotFoundError as e:
		raise ToolError(f"Failed to execute pdftoppm: {e.reason}. Install poppler-utils package.") from e
	if not result.ok:
		raise ToolError(f"PDF conversion error: {result.stderr_excerpt}. Make sure poppler-utils is installed.")

	pages = discover_page_files(prefix, settings.PAGE_NAME_PADDINGS)
	if not pages:
		raise ToolError("PDF conversion failed: no output files created")
	logger.info("Converted %d pages from PDF", len(pages), extra={"source": source_path, "pages": len(pages)})
	return pages
