"""
tools.py

Thin wrapper around subprocess for the external command-line tools
(pdfinfo, pdftoppm, pdftotext).

Only the exit status, captured streams and produced files are used;
the tools' internals are never relied upon.
"""

import logging
import subprocess
from typing import List, NamedTuple, Optional, Sequence

from . import config
from .utils import ToolInvocationError

logger = logging.getLogger(__name__)


class ToolResult(NamedTuple):
    args: List[str]
    returncode: int
    stdout: str
    stderr: str


def run_tool(args: Sequence[str], timeout: Optional[float] = None) -> ToolResult:
    """
    Run an external command and capture its output.

    A non-zero exit status is not an error here; callers decide what
    stderr and the return code mean for their stage.

    Args:
        args: Command and arguments.
        timeout: Seconds before the process is killed. Defaults to
            config.TOOL_TIMEOUT_SECONDS.

    Raises:
        ToolInvocationError: If the command cannot be started or times out.
    """
    if timeout is None:
        timeout = config.TOOL_TIMEOUT_SECONDS

    cmd = [str(a) for a in args]
    logger.debug("Running: %s", " ".join(cmd))

    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolInvocationError(f"{cmd[0]} timed out after {timeout:g}s") from e
    except OSError as e:
        raise ToolInvocationError(f"{cmd[0]} could not be started: {e}") from e

    return ToolResult(
        args=cmd,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
