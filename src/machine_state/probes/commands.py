"""Execution of platform utilities and pseudo-file reads."""
from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


@dataclass
class CommandResult:
    """Captured outcome of a platform command."""

    success: bool
    output: str
    error: Optional[str] = None


def run_command(command: str, timeout: float = DEFAULT_TIMEOUT_SEC) -> CommandResult:
    """Run ``command`` through the shell and capture its output.

    Never raises. A command only succeeds when it exits with status 0 and
    writes something to stdout.
    """
    LOGGER.debug("Executing command: %s", command)
    try:
        process = subprocess.run(
            command,
            shell=True,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        LOGGER.warning("Command timed out after %ss: %s", timeout, command)
        return CommandResult(success=False, output="", error="timeout")
    except OSError as exc:
        LOGGER.warning("Failed to execute command %s: %s", command, exc)
        return CommandResult(success=False, output="", error=str(exc))

    output = process.stdout or ""
    error_output = (process.stderr or "").strip() or None
    if process.returncode != 0:
        LOGGER.debug("Command failed (%s): %s", process.returncode, error_output)
        return CommandResult(success=False, output=output, error=error_output)
    if not output.strip():
        LOGGER.debug("Command produced no output: %s", command)
        return CommandResult(success=False, output="", error=error_output or "empty output")
    return CommandResult(success=True, output=output, error=error_output)


async def run_command_async(command: str, timeout: float = DEFAULT_TIMEOUT_SEC) -> CommandResult:
    """Run ``command`` on a worker thread."""
    return await asyncio.to_thread(run_command, command, timeout)


def read_text(path: str) -> Optional[str]:
    """Read a text file, returning ``None`` when it is missing or unreadable."""
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        LOGGER.debug("Cannot read %s: %s", path, exc)
        return None


async def read_text_async(path: str) -> Optional[str]:
    return await asyncio.to_thread(read_text, path)
