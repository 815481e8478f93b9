"""Shared test data and a fake Gradle executor."""

import asyncio
import re
from pathlib import Path
from typing import Optional, Sequence

from license_probe.errors import InvocationFailure

FIXTURES = Path(__file__).parent / "fixtures"

APACHE_URL = "https://www.apache.org/licenses/LICENSE-2.0"
APACHE_TEXT = (
    "Apache License\n"
    "Version 2.0, January 2004\n"
    "http://www.apache.org/licenses/\n"
)
MIT_URL = "https://opensource.org/licenses/MIT"
MIT_TEXT = (
    "The MIT License\n\n"
    "Permission is hereby granted, free of charge, to any person obtaining a copy\n"
)

NETTY_LISTING = """\
io.netty:netty-all:4.1.33.Final:runtimeClasspath
org.junit.jupiter:junit-jupiter:5.9.2:testRuntimeClasspath
"""

NETTY_MANIFEST = f"""\
"artifact","moduleUrl","moduleLicense","moduleLicenseUrl",
"io.netty:netty-all:4.1.33.Final","https://netty.io/","Apache License, Version 2.0","{APACHE_URL}",
"""

GUAVA_LISTING = """\
com.google.guava:guava:31.1-jre:runtimeClasspath
com.google.guava:failureaccess:1.0.1:runtimeClasspath
org.junit.jupiter:junit-jupiter-engine:5.9.2:testRuntimeClasspath
"""

GUAVA_MANIFEST = f"""\
"artifact","moduleUrl","moduleLicense","moduleLicenseUrl",
"com.google.guava:guava:31.1-jre","https://github.com/google/guava","Apache License, Version 2.0","{APACHE_URL}",
"com.google.guava:failureaccess:1.0.1","https://github.com/google/guava","Apache License, Version 2.0","{APACHE_URL}",
"""


class FakeGradle:
    """Stands in for shell.execute and answers like Gradle running a probe.

    Every call is recorded together with the probe script it received. The
    license report task writes ``manifest`` into the report directory named
    in the probe, like the license report plugin does. Tasks in
    ``block_tasks`` wait for ``release`` after setting ``started``, so a test
    can cancel the caller while Gradle is still running.
    """

    def __init__(
        self,
        listing: str = "",
        manifest: Optional[str] = None,
        fail_tasks: Sequence[str] = (),
        block_tasks: Sequence[str] = (),
    ) -> None:
        self.listing = listing
        self.manifest = manifest
        self.fail_tasks = set(fail_tasks)
        self.block_tasks = set(block_tasks)
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled: list[str] = []
        self.calls: list[tuple[list[str], Path, Optional[float]]] = []
        self.scripts: list[str] = []

    async def __call__(
        self, command: Sequence[str], cwd: Path, timeout: Optional[float] = None
    ) -> str:
        command = list(command)
        self.calls.append((command, cwd, timeout))

        script = Path(command[command.index("--init-script") + 1])
        assert script.is_file(), "init script must exist while Gradle runs"
        content = script.read_text(encoding="utf-8")
        self.scripts.append(content)

        task = command[-1].rsplit(":", 1)[-1]
        if task in self.block_tasks:
            self.started.set()
            try:
                await self.release.wait()
            except asyncio.CancelledError:
                self.cancelled.append(task)
                assert script.is_file(), "init script must outlive the cancelled process"
                raise

        if task in self.fail_tasks:
            raise InvocationFailure(
                f"gradle exited with status 1 running {task}",
                command,
                returncode=1,
                stderr="FAILURE: Build failed with an exception.",
            )

        if task == "printDependencies":
            return self.listing
        if task == "generateLicenseReport":
            if self.manifest is not None:
                output_dir = Path(re.search(r"outputDir = '([^']+)'", content).group(1))
                (output_dir / "licenses.csv").write_text(self.manifest, encoding="utf-8")
            return ""
        raise AssertionError(f"unexpected Gradle task {command[-1]}")

    @property
    def tasks(self) -> list[str]:
        return [command[-1] for command, _, _ in self.calls]


def make_gradle_project(directory: Path, wrapper: bool = True) -> Path:
    """Create a minimal Gradle project, optionally with a gradlew wrapper."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "build.gradle").write_text("apply plugin: 'java'\n", encoding="utf-8")
    if wrapper:
        gradlew = directory / "gradlew"
        gradlew.write_text("#!/bin/sh\nexit 1\n", encoding="utf-8")
        gradlew.chmod(0o755)
    return directory


def probe_leftovers(directory: Path) -> list[Path]:
    """Return probe scripts or report directories left in a directory."""
    return sorted(directory.glob("license-*.gradle")) + sorted(
        directory.glob(".license-*")
    )
