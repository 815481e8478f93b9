"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from helpers import make_gradle_project
from license_probe.config import SourceConfig


@pytest.fixture
def single_project(tmp_path: Path) -> Path:
    """Create a single-module Gradle project with a wrapper."""
    return make_gradle_project(tmp_path / "single_project")


@pytest.fixture
def multi_project(tmp_path: Path) -> Path:
    """Create a multi-project build with "lib" and "app" subprojects."""
    root = make_gradle_project(tmp_path / "multi_project")
    (root / "settings.gradle").write_text("include 'lib', 'app'\n", encoding="utf-8")
    for name in ("lib", "app"):
        sub = root / name
        sub.mkdir()
        (sub / "build.gradle").write_text("apply plugin: 'java'\n", encoding="utf-8")
    return root


@pytest.fixture
def single_config(single_project: Path) -> SourceConfig:
    """Return a config for the single project."""
    return SourceConfig(source_path=single_project, root=single_project)
