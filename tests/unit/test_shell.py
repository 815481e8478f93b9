"""Unit tests for build tool lookup and invocation."""

import asyncio
import os
import sys
from pathlib import Path

import pytest

from license_probe.errors import InvocationFailure, ToolUnavailable
from license_probe.shell import execute, find_executable


class TestFindExecutable:
    """Tests for find_executable."""

    def test_prefers_executable_wrapper(self, tmp_path: Path, mocker):
        which = mocker.patch("license_probe.shell.shutil.which", return_value="/usr/bin/gradle")
        wrapper = tmp_path / "gradlew"
        wrapper.write_text("#!/bin/sh\n", encoding="utf-8")
        wrapper.chmod(0o755)

        assert find_executable("gradle", [tmp_path / "missing", wrapper]) == str(wrapper)
        which.assert_not_called()

    def test_ignores_non_executable_wrapper(self, tmp_path: Path, mocker):
        mocker.patch("license_probe.shell.shutil.which", return_value="/usr/bin/gradle")
        wrapper = tmp_path / "gradlew"
        wrapper.write_text("#!/bin/sh\n", encoding="utf-8")
        wrapper.chmod(0o644)

        assert find_executable("gradle", [wrapper]) == "/usr/bin/gradle"

    def test_raises_when_nothing_found(self, mocker):
        mocker.patch("license_probe.shell.shutil.which", return_value=None)

        with pytest.raises(ToolUnavailable, match="gradle"):
            find_executable("gradle")


class TestExecute:
    """Tests for execute, using the running interpreter as the child process."""

    @pytest.mark.asyncio
    async def test_returns_stdout(self, tmp_path: Path):
        output = await execute(
            [sys.executable, "-c", "import os; print(os.getcwd())"], tmp_path
        )
        assert Path(output.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, tmp_path: Path):
        command = [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]

        with pytest.raises(InvocationFailure) as exc_info:
            await execute(command, tmp_path)

        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.command == command

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path: Path):
        with pytest.raises(InvocationFailure, match="timed out"):
            await execute(
                [sys.executable, "-c", "import time; time.sleep(30)"],
                tmp_path,
                timeout=0.5,
            )

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path: Path):
        with pytest.raises(InvocationFailure, match="Could not start"):
            await execute([str(tmp_path / "no-such-tool")], tmp_path)

    @pytest.mark.asyncio
    async def test_stdin_is_closed(self, tmp_path: Path):
        output = await execute(
            [sys.executable, "-c", "import sys; print(repr(sys.stdin.read()))"],
            tmp_path,
            timeout=10,
        )
        assert output.strip() == "''"

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self, tmp_path: Path):
        pid_file = tmp_path / "pid"
        code = (
            "import os, time\n"
            f"with open({str(pid_file)!r}, 'w') as f:\n"
            "    f.write(str(os.getpid()))\n"
            "time.sleep(30)\n"
        )
        task = asyncio.create_task(execute([sys.executable, "-c", code], tmp_path))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with pytest.raises(ProcessLookupError):
            os.kill(int(pid_file.read_text()), 0)
