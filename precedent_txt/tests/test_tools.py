"""
Tests for the subprocess wrapper. subprocess.run is mocked.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from precedent_txt import config
from precedent_txt.tools import run_tool
from precedent_txt.utils import ToolInvocationError


class TestRunTool:
    @patch("precedent_txt.tools.subprocess.run")
    def test_captures_output(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            args=["pdfinfo", "a.pdf"], returncode=1, stdout="Pages: 2\n", stderr="warn\n"
        )

        result = run_tool(["pdfinfo", Path("a.pdf")])

        assert result.args == ["pdfinfo", "a.pdf"]
        assert result.returncode == 1
        assert result.stdout == "Pages: 2\n"
        assert result.stderr == "warn\n"
        assert mock_run.call_args.kwargs["timeout"] == config.TOOL_TIMEOUT_SECONDS
        assert mock_run.call_args.kwargs["check"] is False

    @patch("precedent_txt.tools.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="pdftoppm", timeout=3)

        with pytest.raises(ToolInvocationError, match="timed out"):
            run_tool(["pdftoppm", "a.pdf", "a"], timeout=3)

    @patch("precedent_txt.tools.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory")

        with pytest.raises(ToolInvocationError, match="could not be started"):
            run_tool(["pdftotext", "a.pdf"])
