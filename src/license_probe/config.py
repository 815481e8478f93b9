"""Per-source configuration.

The surrounding application loads configuration files; this module only
validates the slice a single source needs.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

DEFAULT_CONFIGURATIONS: tuple[str, ...] = ("runtimeOnly", "runtimeClasspath")
DEFAULT_TIMEOUT = 600.0

_CONFIGURATION_NAME = re.compile(r"^[^:\s]+$")


@dataclass(frozen=True)
class SourceConfig:
    """Settings for one dependency source.

    Attributes:
        source_path: Directory of the module or subproject to scan.
        root: Project root holding the build descriptor and settings.
        configurations: Build tool configurations to enumerate, in order.
        timeout: Seconds a single build tool invocation may take.
    """

    source_path: Path
    root: Path
    configurations: tuple[str, ...] = DEFAULT_CONFIGURATIONS
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        source_path = Path(self.source_path).resolve()
        root = Path(self.root).resolve()
        if source_path != root and root not in source_path.parents:
            raise ValueError(f"source_path {source_path} is not inside root {root}")

        configurations = _normalize_configurations(self.configurations)
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

        object.__setattr__(self, "source_path", source_path)
        object.__setattr__(self, "root", root)
        object.__setattr__(self, "configurations", configurations)

    @property
    def relative_path(self) -> Path:
        """Return source_path relative to root."""
        return self.source_path.relative_to(self.root)

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], base: Optional[Path] = None
    ) -> "SourceConfig":
        """Build a config from a loaded configuration mapping.

        Accepts the shape produced by the application's configuration loader::

            {
                "source_path": "app",
                "root": ".",
                "gradle": {"configurations": "runtimeClasspath", "timeout": 300},
            }

        Args:
            mapping: Loaded configuration values.
            base: Directory relative paths are resolved against. Defaults to
                the current working directory.

        Returns:
            A validated SourceConfig.

        Raises:
            ValueError: If required keys are missing or values are invalid.
        """
        base = base or Path.cwd()

        if not mapping.get("source_path"):
            raise ValueError("source_path must be provided")
        source_path = base / Path(mapping["source_path"])
        root = base / Path(mapping["root"]) if mapping.get("root") else source_path

        gradle = mapping.get("gradle") or {}
        if not isinstance(gradle, Mapping):
            raise ValueError("gradle settings must be a mapping")

        configurations: Union[str, Iterable[str]] = gradle.get(
            "configurations", DEFAULT_CONFIGURATIONS
        )
        timeout = gradle.get("timeout", DEFAULT_TIMEOUT)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool):
            raise ValueError(f"timeout must be a number, got {timeout!r}")

        return cls(
            source_path=source_path,
            root=root,
            configurations=configurations,
            timeout=float(timeout),
        )


def _normalize_configurations(value: Union[str, Iterable[str]]) -> tuple[str, ...]:
    """Turn a single name or a sequence of names into an ordered, unique tuple."""
    if isinstance(value, str):
        value = [value]

    names: list[str] = []
    for name in value:
        if not isinstance(name, str) or not _CONFIGURATION_NAME.match(name):
            raise ValueError(f"Invalid configuration name: {name!r}")
        if name not in names:
            names.append(name)

    if not names:
        raise ValueError("At least one configuration must be given")
    return tuple(names)
