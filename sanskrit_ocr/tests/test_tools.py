import os
import sys

import pytest

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.services import converter, recognizer
from sanskrit_ocr.services.converter import convert_pdf_to_images, discover_page_files
from sanskrit_ocr.services.recognizer import recognize_image
from sanskrit_ocr.services.tools import ToolError, ToolNotFoundError, run_tool

from .conftest import tool_result


def test_run_tool_captures_output():
	result = run_tool(sys.executable, ["-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"])
	assert result.returncode == 3
	assert result.ok is False
	assert result.stdout_text.strip() == "out"
	assert result.stderr_excerpt == "err"


def test_run_tool_missing_binary():
	with pytest.raises(ToolNotFoundError) as excinfo:
		run_tool("definitely-not-an-installed-tool", ["--version"])
	assert excinfo.value.program == "definitely-not-an-installed-tool"


def test_run_tool_timeout():
	with pytest.raises(ToolError, match="timed out"):
		run_tool(sys.executable, ["-c", "import time; time.sleep(5)"], timeout=0.2)


class TestDiscoverPageFiles:
	def test_mixed_padding_is_probed_widest_first(self):
		existing = {"/w/page-001.png", "/w/page-002.png", "/w/page-03.png"}
		pages = discover_page_files("/w/page", (3, 2), exists=existing.__contains__)
		assert pages == ["/w/page-001.png", "/w/page-002.png", "/w/page-03.png"]

	def test_stops_at_first_missing_index(self):
		existing = {"/w/page-1.png", "/w/page-2.png", "/w/page-4.png"}
		pages = discover_page_files("/w/page", (4, 3, 2, 1), exists=existing.__contains__)
		assert pages == ["/w/page-1.png", "/w/page-2.png"]

	def test_no_pages(self):
		assert discover_page_files("/w/page", (3, 2), exists=lambda p: False) == []


def test_convert_pdf_to_images_finds_generated_pages(tmp_path, monkeypatch):
	calls = []

	def fake_run_tool(program, args, timeout=None):
		calls.append((program, list(args)))
		prefix = args[-1]
		for n in range(1, 13):
			with open(f"{prefix}-{n:02d}.png", "wb") as f:
				f.write(b"png")
		return tool_result()

	monkeypatch.setattr(converter, "run_tool", fake_run_tool)

	pages = convert_pdf_to_images("/uploads/ocr_1.pdf", str(tmp_path))

	assert calls == [("pdftoppm", ["-png", "/uploads/ocr_1.pdf", os.path.join(str(tmp_path), "page")])]
	assert len(pages) == 12
	assert pages[0].endswith("page-01.png")
	assert pages[-1].endswith("page-12.png")


def test_convert_pdf_to_images_no_output(tmp_path, monkeypatch):
	monkeypatch.setattr(converter, "run_tool", lambda program, args, timeout=None: tool_result())
	with pytest.raises(ToolError, match="PDF conversion failed: no output files created"):
		convert_pdf_to_images("/uploads/ocr_1.pdf", str(tmp_path))


def test_convert_pdf_to_images_tool_error(tmp_path, monkeypatch):
	monkeypatch.setattr(converter, "run_tool", lambda program, args, timeout=None: tool_result(1, stderr=b"Syntax Error: broken xref"))
	with pytest.raises(ToolError) as excinfo:
		convert_pdf_to_images("/uploads/ocr_1.pdf", str(tmp_path))
	assert str(excinfo.value) == "PDF conversion error: Syntax Error: broken xref. Make sure poppler-utils is installed."


def test_convert_pdf_to_images_missing_tool(tmp_path, monkeypatch):
	def fake_run_tool(program, args, timeout=None):
		raise ToolNotFoundError(program, "No such file or directory")

	monkeypatch.setattr(converter, "run_tool", fake_run_tool)
	with pytest.raises(ToolError, match="Failed to execute pdftoppm: No such file or directory. Install poppler-utils package."):
		convert_pdf_to_images("/uploads/ocr_1.pdf", str(tmp_path))


class TestRecognizeImage:
	def test_reads_trims_and_deletes_output(self, work_dir, monkeypatch):
		calls = []

		def fake_run_tool(program, args, timeout=None):
			calls.append((program, list(args)))
			with open(f"{args[1]}.txt", "w", encoding="utf-8") as f:
				f.write("\n  अथ योगानुशासनम्  \n\n")
			return tool_result()

		monkeypatch.setattr(recognizer, "run_tool", fake_run_tool)

		text = recognize_image("/w/page-1.png")

		assert text == "अथ योगानुशासनम्"
		program, args = calls[0]
		assert program == "tesseract"
		assert args[0] == "/w/page-1.png"
		assert args[2:] == ["-l", settings.OCR_LANGUAGE]
		assert os.listdir(str(work_dir)) == []

	def test_language_override(self, work_dir, monkeypatch):
		calls = []

		def fake_run_tool(program, args, timeout=None):
			calls.append(list(args))
			open(f"{args[1]}.txt", "w").close()
			return tool_result()

		monkeypatch.setattr(recognizer, "run_tool", fake_run_tool)

		assert recognize_image("/w/leaf.png", language="hin") == ""
		assert calls[0][-2:] == ["-l", "hin"]

	def test_non_zero_exit(self, work_dir, monkeypatch):
		monkeypatch.setattr(recognizer, "run_tool", lambda program, args, timeout=None: tool_result(1, stderr=b"Failed loading language 'san'"))
		with pytest.raises(ToolError, match="Tesseract error: Failed loading language 'san'"):
			recognize_image("/w/leaf.png")

	def test_missing_output(self, work_dir, monkeypatch):
		monkeypatch.setattr(recognizer, "run_tool", lambda program, args, timeout=None: tool_result())
		with pytest.raises(ToolError, match="Failed to read OCR output"):
			recognize_image("/w/leaf.png")

	def test_missing_tool(self, work_dir, monkeypatch):
		def fake_run_tool(program, args, timeout=None):
			raise ToolNotFoundError(program, "No such file or directory")

		monkeypatch.setattr(recognizer, "run_tool", fake_run_tool)
		with pytest.raises(ToolError, match="Make sure tesseract is installed"):
			recognize_image("/w/leaf.png")
