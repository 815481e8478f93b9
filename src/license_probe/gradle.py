"""Gradle invocation helpers shared by the Gradle source and resolver."""

from pathlib import Path
from typing import Optional

from license_probe.config import SourceConfig
from license_probe.shell import find_executable

DESCRIPTORS = ("build.gradle", "build.gradle.kts")
WRAPPER = "gradlew"
EXECUTABLE = "gradle"


def find_descriptor(source_path: Path, root: Path) -> Optional[Path]:
    """Find the closest build descriptor at or above source_path.

    The search stops at root, so a build file outside the project is never
    picked up.

    Args:
        source_path: Directory to start searching from.
        root: Project root, the last directory searched.

    Returns:
        Path of the descriptor, or None if there is none.
    """
    directory = source_path
    while True:
        for name in DESCRIPTORS:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        if directory == root or directory.parent == directory:
            return None
        directory = directory.parent


def find_gradle(config: SourceConfig) -> str:
    """Locate the Gradle executable for a source.

    A ``gradlew`` wrapper in the module directory or the project root wins
    over a ``gradle`` executable on the PATH.

    Raises:
        ToolUnavailable: If no Gradle executable can be found.
    """
    wrappers = [config.source_path / WRAPPER, config.root / WRAPPER]
    return find_executable(EXECUTABLE, wrappers)


def project_path(config: SourceConfig) -> str:
    """Return the Gradle project path for a source (":" for the root project)."""
    parts = config.relative_path.parts
    return ":" + ":".join(parts)


def task_path(config: SourceConfig, task: str) -> str:
    """Return the fully qualified path of a task in the source's project."""
    path = project_path(config)
    if path == ":":
        return f":{task}"
    return f"{path}:{task}"


def gradle_command(
    executable: str, script: Path, config: SourceConfig, task: str
) -> list[str]:
    """Build a quiet, non-interactive Gradle command running one probe task."""
    return [
        executable,
        "--quiet",
        "--console=plain",
        "--init-script",
        str(script),
        "--project-dir",
        str(config.root),
        task_path(config, task),
    ]
