"""Core data models for license_probe.

This module defines the dependency identity types, the license records
resolved for them, and the Dependency entity that ties a resolved
coordinate to its lazily computed license data.
"""

import asyncio
import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from license_probe.errors import ResolutionFailure

if TYPE_CHECKING:
    from license_probe.resolvers.base import BaseResolver

logger = logging.getLogger(__name__)

UNKNOWN_LICENSE = "unknown"

_COORDINATE_PART = re.compile(r"^[^:\s]+$")


@dataclass(frozen=True)
class DependencyCoordinate:
    """Identity of a dependency within one ecosystem.

    Frozen for hashability so coordinates can key manifests and
    deduplication maps.

    Attributes:
        group: Namespace the artifact is published under (e.g., "io.netty").
        artifact: Artifact name (e.g., "netty-all").
    """

    group: str
    artifact: str

    def __post_init__(self) -> None:
        for part in (self.group, self.artifact):
            if not _COORDINATE_PART.match(part):
                raise ValueError(f"Invalid coordinate part: {part!r}")

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"

    @classmethod
    def parse(cls, value: str) -> "DependencyCoordinate":
        """Parse a "group:artifact" string.

        Raises:
            ValueError: If the value is not exactly two non-empty parts.
        """
        parts = value.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid coordinate: {value!r}")
        return cls(group=parts[0], artifact=parts[1])


@dataclass(frozen=True)
class LicenseEntry:
    """A single license text and where it was found.

    Attributes:
        text: Full license text (may be empty if only a reference is known).
        sources: Unique URLs or paths the text was read from, in discovery order.
    """

    text: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class LicenseRecord:
    """License data settled for one dependency.

    Attributes:
        type: Lowercase license key (e.g., "apache-2.0"), "other" when the
            license was not recognised, "none" when nothing was declared and
            "unknown" when resolution failed.
        licenses: License texts with their sources.
    """

    type: str
    licenses: tuple[LicenseEntry, ...] = ()

    @classmethod
    def unknown(cls) -> "LicenseRecord":
        """Return the record used when resolution failed."""
        return cls(type=UNKNOWN_LICENSE)

    @property
    def is_unknown(self) -> bool:
        return self.type == UNKNOWN_LICENSE

    @property
    def sources(self) -> list[str]:
        """Return every license source across all entries."""
        return [source for entry in self.licenses for source in entry.sources]


@dataclass(frozen=True)
class DependencyRecord:
    """Metadata and license data for a dependency, ready for recording.

    Attributes:
        metadata: Source type, name, group, artifact, version and configuration.
        license: The settled license record.
    """

    metadata: dict[str, str]
    license: LicenseRecord

    def __getitem__(self, key: str) -> str:
        return self.metadata[key]

    @property
    def licenses(self) -> tuple[LicenseEntry, ...]:
        return self.license.licenses


@dataclass(frozen=True)
class ManifestRow:
    """One row of a build tool license manifest.

    Attributes:
        coordinate: Dependency the row describes.
        version: Version the row was reported for.
        license_name: Declared license name (may be empty).
        license_source: URL or path of the license text (may be empty).
    """

    coordinate: DependencyCoordinate
    version: str
    license_name: str = ""
    license_source: str = ""


class ResolutionState(enum.Enum):
    """Lifecycle of a dependency's license data."""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class Dependency:
    """A resolved dependency reported by a build tool.

    Identity and version are fixed at construction and reading them has no
    side effects. License data is resolved on the first call to
    :meth:`license` or :meth:`record` and memoized afterwards.
    """

    def __init__(
        self,
        coordinate: DependencyCoordinate,
        version: str,
        configuration: str,
        source_path: Path,
        resolver: "BaseResolver",
        source_type: str,
    ) -> None:
        """Initialize the dependency.

        Args:
            coordinate: Dependency identity.
            version: Version resolved by the build tool.
            configuration: Configuration the dependency was resolved in.
            source_path: Module directory the dependency was enumerated for.
            resolver: Resolver used to fetch license data on demand.
            source_type: Name of the source that produced it (e.g., "gradle").
        """
        self._coordinate = coordinate
        self._version = version
        self._configuration = configuration
        self._source_path = source_path
        self._resolver = resolver
        self._source_type = source_type
        self._state = ResolutionState.UNRESOLVED
        self._license: Optional[LicenseRecord] = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"Dependency({self.name!r}, version={self._version!r}, "
            f"configuration={self._configuration!r})"
        )

    @property
    def coordinate(self) -> DependencyCoordinate:
        return self._coordinate

    @property
    def name(self) -> str:
        return str(self._coordinate)

    @property
    def version(self) -> str:
        return self._version

    @property
    def configuration(self) -> str:
        return self._configuration

    @property
    def source_path(self) -> Path:
        return self._source_path

    @property
    def state(self) -> ResolutionState:
        return self._state

    async def license(self) -> LicenseRecord:
        """Return the dependency's license record, resolving it once.

        Resolution failures settle the record as unknown instead of raising.
        If the resolution is cancelled the record also settles as unknown
        and the cancellation is re-raised. Concurrent callers wait for the
        first resolution instead of starting another.

        Returns:
            The settled LicenseRecord.
        """
        async with self._lock:
            if self._state is ResolutionState.RESOLVED:
                return self._license

            self._state = ResolutionState.RESOLVING
            try:
                self._license = await self._resolver.resolve(self)
            except ResolutionFailure as e:
                logger.warning(
                    "Unknown license for %s %s: %s", self.name, self._version, e.reason
                )
                self._license = LicenseRecord.unknown()
            except BaseException:
                # Cancelled or crashed: settle anyway, resolution runs at most once.
                self._license = LicenseRecord.unknown()
                raise
            finally:
                self._state = ResolutionState.RESOLVED

            return self._license

    async def record(self) -> DependencyRecord:
        """Return metadata plus the settled license record.

        Returns:
            DependencyRecord for this dependency.
        """
        license_record = await self.license()
        return DependencyRecord(
            metadata=self.metadata(),
            license=license_record,
        )

    def metadata(self) -> dict[str, str]:
        """Return recordable metadata without touching license data."""
        return {
            "type": self._source_type,
            "name": self.name,
            "group": self._coordinate.group,
            "artifact": self._coordinate.artifact,
            "version": self._version,
            "configuration": self._configuration,
        }


def dedupe(values: list[Any]) -> list[Any]:
    """Return values with duplicates removed, keeping first occurrences."""
    seen: dict[Any, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)
