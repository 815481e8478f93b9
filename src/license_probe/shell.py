"""Helpers for locating and running external build tools."""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from license_probe.errors import InvocationFailure, ToolUnavailable

logger = logging.getLogger(__name__)

# Signature shared by execute() and the fakes used in tests.
Executor = Callable[[Sequence[str], Path, Optional[float]], Awaitable[str]]


def find_executable(name: str, wrappers: Sequence[Path] = ()) -> str:
    """Locate a build tool, preferring project wrapper scripts.

    Args:
        name: Executable name to look up on the PATH (e.g., "gradle").
        wrappers: Candidate wrapper scripts (e.g., "<root>/gradlew") checked first.

    Returns:
        Path or name of the executable to run.

    Raises:
        ToolUnavailable: If neither a wrapper nor the named executable exists.
    """
    for wrapper in wrappers:
        if wrapper.is_file() and os.access(wrapper, os.X_OK):
            return str(wrapper)

    found = shutil.which(name)
    if found is None:
        raise ToolUnavailable(f"{name} is not available on PATH")
    return found


async def execute(
    command: Sequence[str], cwd: Path, timeout: Optional[float] = None
) -> str:
    """Run a command non-interactively and return its standard output.

    The process is killed if it exceeds the timeout or if the awaiting task
    is cancelled.

    Args:
        command: Executable followed by its arguments.
        cwd: Working directory for the process.
        timeout: Seconds to wait before giving up, or None to wait forever.

    Returns:
        Decoded standard output.

    Raises:
        InvocationFailure: If the process cannot start, times out or exits non-zero.
    """
    logger.debug("Running %s in %s", " ".join(command), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise InvocationFailure(f"Could not start {command[0]}: {e}", command) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        raise InvocationFailure(
            f"{command[0]} timed out after {timeout} seconds", command
        ) from None
    except asyncio.CancelledError:
        await _kill(process)
        raise

    error_output = stderr.decode("utf-8", errors="replace")
    if process.returncode != 0:
        raise InvocationFailure(
            f"{command[0]} exited with status {process.returncode}",
            command,
            returncode=process.returncode,
            stderr=error_output,
        )

    return stdout.decode("utf-8", errors="replace")


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a running process and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
