"""Dependency source for Gradle projects.

Gradle itself resolves the dependency graph: a generated init script adds a
task that prints every resolved artifact of the requested configurations,
one ``group:artifact:version:configuration`` line each.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from license_probe.cache import ProbeCache
from license_probe.config import SourceConfig
from license_probe.errors import InvocationFailure, ToolUnavailable
from license_probe.gradle import (
    find_descriptor,
    find_gradle,
    gradle_command,
    project_path,
)
from license_probe.models import Dependency, DependencyCoordinate
from license_probe.probes import probe_script
from license_probe.resolvers.base import LicenseClassifier
from license_probe.resolvers.gradle import GradleLicenseResolver
from license_probe.resolvers.http import LicenseTextFetcher
from license_probe.shell import Executor
from license_probe.sources.base import BaseSource

logger = logging.getLogger(__name__)

DEPENDENCIES_TEMPLATE = "dependencies.gradle.j2"
DEPENDENCIES_TASK = "printDependencies"

DEPENDENCY_LINE = re.compile(
    r"^(?P<group>[^:\s]+):(?P<artifact>[^:\s]+)"
    r":(?P<version>[^:\s]+):(?P<configuration>[^:\s]+)$"
)

TEST_CONFIGURATION = re.compile(r"test", re.IGNORECASE)


def is_test_configuration(name: str) -> bool:
    """Check if a configuration only serves tests (e.g., "testRuntimeClasspath")."""
    return TEST_CONFIGURATION.search(name) is not None


@dataclass(frozen=True)
class ListedDependency:
    """One parsed line of the dependency listing."""

    coordinate: DependencyCoordinate
    version: str
    configuration: str


def parse_dependency_listing(output: str) -> list[ListedDependency]:
    """Parse the output of the dependency listing task.

    Blank lines are ignored; every other line must match
    ``group:artifact:version:configuration``.

    Args:
        output: Standard output of the Gradle invocation.

    Returns:
        Parsed lines in output order.

    Raises:
        InvocationFailure: If any line does not match the expected format.
    """
    listed = []
    for line_num, line in enumerate(output.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue

        match = DEPENDENCY_LINE.match(line)
        if not match:
            raise InvocationFailure(
                f"Unparsable dependency on output line {line_num}: {line!r}"
            )

        listed.append(
            ListedDependency(
                coordinate=DependencyCoordinate(match["group"], match["artifact"]),
                version=match["version"],
                configuration=match["configuration"],
            )
        )

    return listed


class GradleSource(BaseSource):
    """Source for projects built with Gradle.

    Enabled when a ``build.gradle`` or ``build.gradle.kts`` exists at or
    above the module directory (within the project root) and Gradle, or a
    ``gradlew`` wrapper, is available. In multi-project builds each
    subproject gets its own source, scoped by its directory.
    """

    def __init__(
        self,
        config: SourceConfig,
        cache: Optional[ProbeCache] = None,
        executor: Optional[Executor] = None,
        classifier: Optional[LicenseClassifier] = None,
    ) -> None:
        """Initialize the Gradle source.

        Args:
            config: Settings for the module to scan.
            cache: Optional cache to share between sources of one scan.
            executor: Optional command runner; defaults to shell.execute.
            classifier: Optional license classifier for resolved licenses.
        """
        super().__init__(config, cache=cache, executor=executor)
        self.classifier = classifier
        self.fetcher = LicenseTextFetcher(self.cache)
        self._resolvers: dict[tuple[str, SourceConfig], GradleLicenseResolver] = {}

    @classmethod
    def type(cls) -> str:
        return "gradle"

    def enabled(self, source_path: Optional[Path] = None) -> bool:
        """Check for a Gradle build descriptor and a Gradle executable.

        Args:
            source_path: Module directory; defaults to the configured one.

        Returns:
            True if the module is built with Gradle and Gradle can be run.
        """
        try:
            config = self._config_for(source_path)
            if find_descriptor(config.source_path, config.root) is None:
                logger.debug("No Gradle build file found for %s", config.source_path)
                return False
            find_gradle(config)
        except ToolUnavailable as e:
            logger.debug("Gradle source disabled: %s", e)
            return False
        except (OSError, ValueError) as e:
            logger.debug("Gradle source disabled for %s: %s", source_path, e)
            return False
        return True

    async def enumerate(
        self,
        source_path: Optional[Path] = None,
        configurations: Optional[Iterable[str]] = None,
    ) -> list[Dependency]:
        """Enumerate the module's resolved runtime dependencies.

        Args:
            source_path: Module directory; defaults to the configured one.
            configurations: Configurations to enumerate; defaults to the configured
                ones.

        Returns:
            Dependencies in Gradle's output order, one per coordinate. Empty if
            Gradle could not be run or its output could not be parsed.

        Raises:
            ValueError: If source_path or configurations are invalid.
        """
        config = self._config_for(source_path, configurations)
        requested = [
            name for name in config.configurations if not is_test_configuration(name)
        ]
        if len(requested) != len(config.configurations):
            logger.debug(
                "Skipping test configurations: %s",
                ", ".join(set(config.configurations) - set(requested)),
            )
        if not requested:
            logger.warning(
                "No non-test configurations requested for %s", config.source_path
            )
            return []
        config = dataclasses.replace(config, configurations=tuple(requested))

        try:
            executable = find_gradle(config)
            output = await self._list_dependencies(executable, config)
            listed = parse_dependency_listing(output)
        except ToolUnavailable as e:
            self.report_failure(InvocationFailure(str(e)))
            return []
        except InvocationFailure as e:
            self.report_failure(e)
            return []

        resolver = self._resolver_for(executable, config)
        dependencies: dict[DependencyCoordinate, Dependency] = {}
        for item in listed:
            if is_test_configuration(item.configuration):
                continue

            existing = dependencies.get(item.coordinate)
            if existing is not None:
                if existing.version != item.version:
                    logger.debug(
                        "Keeping %s %s from %s, ignoring %s from %s",
                        existing.name,
                        existing.version,
                        existing.configuration,
                        item.version,
                        item.configuration,
                    )
                continue

            dependencies[item.coordinate] = Dependency(
                coordinate=item.coordinate,
                version=item.version,
                configuration=item.configuration,
                source_path=config.source_path,
                resolver=resolver,
                source_type=self.type(),
            )

        logger.info(
            "Found %d Gradle dependencies for %s", len(dependencies), config.source_path
        )
        return list(dependencies.values())

    async def _list_dependencies(self, executable: str, config: SourceConfig) -> str:
        """Run the dependency listing probe and return Gradle's output."""
        async with self.cache.lock:
            try:
                with probe_script(
                    config.source_path,
                    DEPENDENCIES_TEMPLATE,
                    project_path=project_path(config),
                    task=DEPENDENCIES_TASK,
                    configurations=config.configurations,
                ) as probe:
                    command = gradle_command(
                        executable, probe.script, config, DEPENDENCIES_TASK
                    )
                    return await self.executor(command, config.root, config.timeout)
            except OSError as e:
                raise InvocationFailure(
                    f"Could not create probe in {config.source_path}: {e}"
                ) from e

    def _config_for(
        self,
        source_path: Optional[Path] = None,
        configurations: Optional[Iterable[str]] = None,
    ) -> SourceConfig:
        changes = {}
        if source_path is not None:
            changes["source_path"] = Path(source_path)
        if configurations is not None:
            changes["configurations"] = tuple(configurations)
        if not changes:
            return self.config
        return dataclasses.replace(self.config, **changes)

    def _resolver_for(
        self, executable: str, config: SourceConfig
    ) -> GradleLicenseResolver:
        key = (executable, config)
        if key not in self._resolvers:
            self._resolvers[key] = GradleLicenseResolver(
                executable,
                config,
                self.cache,
                executor=self.executor,
                classifier=self.classifier,
                fetcher=self.fetcher,
            )
        return self._resolvers[key]

    async def close(self) -> None:
        """Close the license text fetcher shared by this source's resolvers."""
        await self.fetcher.close()
