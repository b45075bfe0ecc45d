import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from sanskrit_ocr.core.config import settings
from sanskrit_ocr.utils.parsing import excerpt

logger = logging.getLogger(__name__)


class ToolError(Exception):
	"""An external tool could not produce what was asked of it."""


class ToolNotFoundError(ToolError):
	def __init__(self, program: str, reason: str) -> None:
		super().__init__(f"{program}: {reason}")
		self.program = program
		self.reason = reason


@dataclass(frozen=True)
class ToolResult:
	args: Tuple[str, ...]
	returncode: int
	stdout: bytes
	stderr: bytes

	@property
	def ok(self) -> bool:
		return self.returncode == 0

	@property
	def stdout_text(self) -> str:
		return self.stdout.decode("utf-8", errors="replace")

	@property
	def stderr_excerpt(self) -> str:
		return excerpt(self.stderr.decode("utf-8", errors="replace"))


def run_tool(program: str, args: Sequence[object], timeout: Optional[float] = None) -> ToolResult:
	"""Run one external program synchronously and capture its output.

	A non-zero exit status is returned, not raised; callers decide what it means.
	Raises ToolNotFoundError when the binary cannot be started and ToolError on timeout.
	"""
	cmd = [program, *(str(a) for a in args)]
	if timeout is None:
		timeout = settings.TOOL_TIMEOUT_SECONDS
	logger.debug("Running tool command: %s", " ".join(cmd))
	try:
		completed = subprocess.run(
			cmd,
			check=False,
			stdout=subprocess.PIPE,
			stderr=subprocess.PIPE,
			timeout=timeout,
		)
	except FileNotFoundError as exc:
		raise ToolNotFoundError(program, str(exc)) from exc
	except PermissionError as exc:
		raise ToolNotFoundError(program, str(exc)) from exc
	except subprocess.TimeoutExpired as exc:
		raise ToolError(f"{program} timed out after {timeout:.0f}s") from exc

	result = ToolResult(tuple(cmd), completed.returncode, completed.stdout, completed.stderr)
	if not result.ok:
		logger.warning(
			"%s exited with code %s: %s", program, result.returncode, result.stderr_excerpt,
			extra={"tool": program, "returncode": result.returncode},
		)
	return result
