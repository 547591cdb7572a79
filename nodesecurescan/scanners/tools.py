"""Running external command-line tools (npm, depcheck, snyk)."""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from ..constants import EXTERNAL_TOOL_TIMEOUT
from ..core.exceptions import ExternalToolError, ToolNotFoundError, ToolOutputError, ToolTimeoutError

logger = logging.getLogger(__name__)


class ToolRunner:
    """Runs external commands with a timeout and parses their JSON output."""

    def __init__(self, timeout: int = EXTERNAL_TOOL_TIMEOUT) -> None:
        self.timeout = timeout

    def run(self, cmd: list[str], cwd: str | Path | None = None) -> subprocess.CompletedProcess[str]:
        """Run *cmd* and return the completed process, whatever its exit code.

        Raises:
            ToolNotFoundError: If the executable does not exist.
            ToolTimeoutError: If the command exceeds the timeout.
        """
        tool = cmd[0]
        logger.debug(f"Running {' '.join(cmd)}", extra={"event": "tool_started", "tool": tool})
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{tool} is not installed or not on PATH", tool=tool, details=str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise ToolTimeoutError(f"{tool} timed out after {self.timeout}s", tool=tool) from e

    def run_json(self, cmd: list[str], cwd: str | Path | None = None) -> Any:
        """Run *cmd* and parse its stdout as JSON.

        npm audit, npm outdated, depcheck and snyk exit non-zero when they
        find something, so JSON on stdout counts as success regardless of the
        exit code.

        Raises:
            ExternalToolError: If the command failed without printing anything.
            ToolOutputError: If stdout is not valid JSON.
        """
        tool = cmd[0]
        result = self.run(cmd, cwd)
        stdout = result.stdout.strip()

        if not stdout:
            if result.returncode != 0:
                raise ExternalToolError(
                    f"{tool} exited with code {result.returncode}",
                    tool=tool,
                    details=result.stderr.strip() or None,
                )
            return {}

        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ToolOutputError(f"{tool} did not produce valid JSON", tool=tool, details=str(e)) from e

    def run_json_object(self, cmd: list[str], cwd: str | Path | None = None) -> dict[str, Any]:
        """Like ``run_json`` but requires a JSON object."""
        data = self.run_json(cmd, cwd)
        if not isinstance(data, dict):
            raise ToolOutputError(
                f"{cmd[0]} returned {type(data).__name__}, expected an object", tool=cmd[0]
            )
        return data

    def is_available(self, cmd: list[str]) -> bool:
        """Whether *cmd* (e.g. ``["snyk", "--version"]``) runs successfully."""
        try:
            return self.run(cmd).returncode == 0
        except ExternalToolError:
            return False
