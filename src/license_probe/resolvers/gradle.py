"""Gradle license resolver.

Asks Gradle for a license manifest through a generated init script that
applies the dependency-license-report plugin, then builds license records
from the manifest rows and the license texts they point at.
"""

import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from license_probe.cache import Manifest, ProbeCache
from license_probe.config import SourceConfig
from license_probe.errors import InvocationFailure, ResolutionFailure
from license_probe.gradle import gradle_command, project_path
from license_probe.models import (
    Dependency,
    DependencyCoordinate,
    LicenseEntry,
    LicenseRecord,
    ManifestRow,
    dedupe,
)
from license_probe.probes import probe_script
from license_probe.resolvers.base import BaseResolver, LicenseClassifier
from license_probe.resolvers.http import LicenseTextFetcher
from license_probe.resolvers.spdx import SpdxClassifier
from license_probe.shell import Executor, execute

logger = logging.getLogger(__name__)

LICENSES_TEMPLATE = "licenses.gradle.j2"
REPORT_TASK = "generateLicenseReport"
REPORT_FILE = "licenses.csv"
PLUGIN_VERSION = "2.9"

# CSV report columns: coordinate with version, license type, license source.
ARTIFACT_COLUMN = "artifact"
LICENSE_NAME_COLUMN = "moduleLicense"
LICENSE_URL_COLUMN = "moduleLicenseUrl"
REQUIRED_COLUMNS = (ARTIFACT_COLUMN, LICENSE_NAME_COLUMN, LICENSE_URL_COLUMN)


def parse_license_manifest(lines: Iterable[str]) -> Manifest:
    """Parse the license report CSV into rows grouped by coordinate.

    Args:
        lines: Lines of the CSV report, header first.

    Returns:
        Manifest mapping each coordinate to its rows, in report order.

    Raises:
        InvocationFailure: If a column is missing or an artifact is malformed.
    """
    reader = csv.DictReader(lines)
    columns = reader.fieldnames or []
    missing = [column for column in REQUIRED_COLUMNS if column not in columns]
    if missing:
        raise InvocationFailure(
            f"License manifest is missing columns: {', '.join(missing)}"
        )

    manifest: Manifest = {}
    for line_num, row in enumerate(reader, start=2):
        artifact = (row.get(ARTIFACT_COLUMN) or "").strip()
        name, _, version = artifact.rpartition(":")
        try:
            coordinate = DependencyCoordinate.parse(name)
        except ValueError:
            coordinate = None
        if coordinate is None or not version:
            raise InvocationFailure(
                f"Unparsable artifact on license manifest line {line_num}: {artifact!r}"
            )

        manifest.setdefault(coordinate, []).append(
            ManifestRow(
                coordinate=coordinate,
                version=version,
                license_name=(row.get(LICENSE_NAME_COLUMN) or "").strip(),
                license_source=(row.get(LICENSE_URL_COLUMN) or "").strip(),
            )
        )

    return manifest


def select_rows(manifest: Manifest, dependency: Dependency) -> list[ManifestRow]:
    """Return the manifest rows describing a dependency.

    Rows are matched by coordinate. If some rows carry the dependency's
    exact version only those are used.
    """
    rows = manifest.get(dependency.coordinate, [])
    exact = [row for row in rows if row.version == dependency.version]
    return exact or rows


class GradleLicenseResolver(BaseResolver):
    """Resolver that reads licenses from a Gradle license manifest.

    The manifest covers every dependency of a module, so it is generated once
    per source path and kept in the ProbeCache; license texts are downloaded
    once per URL through the same cache.

    Attributes:
        executable: Gradle executable to run.
        config: Source configuration (root, module, configurations, timeout).
        cache: Cache for manifests and license texts.
        classifier: Classifier producing license keys.
        fetcher: Downloader for remote license texts.
    """

    def __init__(
        self,
        executable: str,
        config: SourceConfig,
        cache: ProbeCache,
        executor: Optional[Executor] = None,
        classifier: Optional[LicenseClassifier] = None,
        fetcher: Optional[LicenseTextFetcher] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            executable: Gradle executable to run.
            config: Source configuration.
            cache: Cache for manifests and license texts.
            executor: Coroutine running a command; defaults to shell.execute.
            classifier: License classifier; defaults to SpdxClassifier.
            fetcher: License text downloader; defaults to one backed by cache.
        """
        self.executable = executable
        self.config = config
        self.cache = cache
        self.executor = executor or execute
        self.classifier = classifier or SpdxClassifier()
        self.fetcher = fetcher or LicenseTextFetcher(cache)

    @property
    def name(self) -> str:
        return "Gradle"

    async def resolve(self, dependency: Dependency) -> LicenseRecord:
        """Resolve a dependency's license record from the module's manifest.

        Args:
            dependency: Dependency enumerated for this resolver's source.

        Returns:
            LicenseRecord with classified type and license texts.

        Raises:
            ResolutionFailure: If the manifest is unavailable, has no row for
                the dependency, or a license text cannot be read.
        """
        manifest = await self.manifest(dependency.source_path)
        if manifest is None:
            raise ResolutionFailure(dependency.name, "license manifest is unavailable")

        rows = select_rows(manifest, dependency)
        if not rows:
            raise ResolutionFailure(dependency.name, "not listed in license manifest")

        entries = await self._license_entries(dependency, rows)
        license_type = self.classifier.classify(
            [row.license_name for row in rows],
            [entry.text for entry in entries],
        )
        logger.debug(
            "Resolved %s %s as %s", dependency.name, dependency.version, license_type
        )
        return LicenseRecord(type=license_type, licenses=tuple(entries))

    async def manifest(self, source_path: Path) -> Optional[Manifest]:
        """Return the license manifest for a module, generating it once.

        Manifests are cached per module and configuration set, so a resolver
        for other configurations of the same module runs its own report. A
        failed generation is cached as well, so it is not retried for the
        remaining dependencies.

        Args:
            source_path: Module directory the manifest describes.

        Returns:
            The manifest, or None if it could not be generated.
        """
        configurations = self.config.configurations
        async with self.cache.lock:
            if self.cache.has_manifest(source_path, configurations):
                return self.cache.get_manifest(source_path, configurations)

            try:
                manifest: Optional[Manifest] = await self._generate_manifest()
            except InvocationFailure as e:
                logger.error(
                    "Could not generate license manifest for %s: %s", source_path, e
                )
                manifest = None

            self.cache.set_manifest(source_path, configurations, manifest)
            return manifest

    async def _generate_manifest(self) -> Manifest:
        try:
            with probe_script(
                self.config.source_path,
                LICENSES_TEMPLATE,
                project_path=project_path(self.config),
                configurations=self.config.configurations,
                plugin_version=PLUGIN_VERSION,
            ) as probe:
                command = gradle_command(
                    self.executable, probe.script, self.config, REPORT_TASK
                )
                await self.executor(command, self.config.root, self.config.timeout)

                report = probe.output_dir / REPORT_FILE
                try:
                    with open(report, "r", encoding="utf-8", newline="") as f:
                        return parse_license_manifest(f)
                except OSError as e:
                    raise InvocationFailure(
                        f"License report was not written: {e}", command
                    ) from e
        except OSError as e:
            raise InvocationFailure(
                f"Could not create probe in {self.config.source_path}: {e}"
            ) from e

    async def _license_entries(
        self, dependency: Dependency, rows: list[ManifestRow]
    ) -> list[LicenseEntry]:
        """Read every license source and merge sources sharing a text."""
        sources_by_text: dict[str, list[str]] = {}
        sources = dedupe([row.license_source for row in rows if row.license_source])
        for source in sources:
            text = await self._read_source(source, dependency.source_path)
            if text is None:
                raise ResolutionFailure(
                    dependency.name, f"could not read license text from {source}"
                )
            sources_by_text.setdefault(text, []).append(source)

        return [
            LicenseEntry(text=text, sources=tuple(sources))
            for text, sources in sources_by_text.items()
        ]

    async def _read_source(self, source: str, source_path: Path) -> Optional[str]:
        parsed = urlparse(source)
        if parsed.scheme in ("http", "https"):
            return await self.fetcher.fetch(source)

        path = Path(parsed.path) if parsed.scheme == "file" else Path(source)
        if not path.is_absolute():
            path = source_path / path
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read license file %s: %s", path, e)
            return None

    async def close(self) -> None:
        """Close the license text fetcher."""
        await self.fetcher.close()
