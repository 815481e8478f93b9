"""Unit tests for SourceConfig."""

from pathlib import Path

import pytest

from license_probe.config import DEFAULT_CONFIGURATIONS, DEFAULT_TIMEOUT, SourceConfig


class TestSourceConfig:
    """Tests for SourceConfig construction and validation."""

    def test_defaults(self, tmp_path: Path):
        config = SourceConfig(source_path=tmp_path, root=tmp_path)

        assert config.configurations == DEFAULT_CONFIGURATIONS
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.relative_path == Path(".")

    def test_paths_are_resolved(self, tmp_path: Path):
        (tmp_path / "app").mkdir()
        config = SourceConfig(source_path=tmp_path / "app" / ".." / "app", root=tmp_path)

        assert config.source_path == (tmp_path / "app").resolve()
        assert config.relative_path == Path("app")

    def test_single_configuration_string(self, tmp_path: Path):
        config = SourceConfig(
            source_path=tmp_path, root=tmp_path, configurations="runtimeClasspath"
        )
        assert config.configurations == ("runtimeClasspath",)

    def test_configurations_are_deduplicated_in_order(self, tmp_path: Path):
        config = SourceConfig(
            source_path=tmp_path,
            root=tmp_path,
            configurations=["b", "a", "b"],
        )
        assert config.configurations == ("b", "a")

    def test_rejects_source_path_outside_root(self, tmp_path: Path):
        (tmp_path / "root").mkdir()
        (tmp_path / "elsewhere").mkdir()

        with pytest.raises(ValueError, match="not inside root"):
            SourceConfig(source_path=tmp_path / "elsewhere", root=tmp_path / "root")

    @pytest.mark.parametrize("configurations", [[], [""], ["runtime classpath"], ["a:b"]])
    def test_rejects_invalid_configurations(self, tmp_path: Path, configurations):
        with pytest.raises(ValueError):
            SourceConfig(source_path=tmp_path, root=tmp_path, configurations=configurations)

    def test_rejects_non_positive_timeout(self, tmp_path: Path):
        with pytest.raises(ValueError, match="timeout"):
            SourceConfig(source_path=tmp_path, root=tmp_path, timeout=0)


class TestFromMapping:
    """Tests for SourceConfig.from_mapping."""

    def test_relative_paths_use_base(self, tmp_path: Path):
        (tmp_path / "lib").mkdir()
        config = SourceConfig.from_mapping(
            {"source_path": "lib", "root": "."}, base=tmp_path
        )

        assert config.source_path == (tmp_path / "lib").resolve()
        assert config.root == tmp_path.resolve()

    def test_root_defaults_to_source_path(self, tmp_path: Path):
        config = SourceConfig.from_mapping({"source_path": str(tmp_path)})
        assert config.root == config.source_path

    def test_gradle_settings(self, tmp_path: Path):
        config = SourceConfig.from_mapping(
            {
                "source_path": str(tmp_path),
                "gradle": {"configurations": "runtimeClasspath", "timeout": 30},
            }
        )

        assert config.configurations == ("runtimeClasspath",)
        assert config.timeout == 30.0

    def test_missing_source_path(self):
        with pytest.raises(ValueError, match="source_path"):
            SourceConfig.from_mapping({"root": "."})

    def test_invalid_gradle_settings(self, tmp_path: Path):
        with pytest.raises(ValueError):
            SourceConfig.from_mapping({"source_path": str(tmp_path), "gradle": "yes"})

    def test_invalid_timeout_type(self, tmp_path: Path):
        with pytest.raises(ValueError, match="timeout"):
            SourceConfig.from_mapping(
                {"source_path": str(tmp_path), "gradle": {"timeout": "soon"}}
            )
