"""Base interface for dependency sources.

A source wraps one build tool for one module: it detects whether the tool
governs the module, enumerates the tool's resolved dependencies and hands
each dependency a resolver for its license data.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from license_probe.cache import ProbeCache
from license_probe.config import SourceConfig
from license_probe.errors import InvocationFailure
from license_probe.models import Dependency, LicenseRecord
from license_probe.shell import Executor, execute

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """Abstract base class for dependency sources.

    Enumeration runs at most once per instance through :meth:`dependencies`;
    failures are collected in :attr:`failures` instead of being raised.

    Attributes:
        config: Settings for the module this source scans.
        cache: Cache shared by this source's resolvers.
        executor: Coroutine used to run build tool commands.
        failures: Invocation failures reported so far.
    """

    def __init__(
        self,
        config: SourceConfig,
        cache: Optional[ProbeCache] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        """Initialize the source.

        Args:
            config: Settings for the module to scan.
            cache: Optional cache to share between sources of one scan.
            executor: Optional command runner; defaults to shell.execute.
        """
        self.config = config
        self.cache = cache or ProbeCache()
        self.executor = executor or execute
        self.failures: list[InvocationFailure] = []
        self._dependencies: Optional[list[Dependency]] = None
        self._lock = asyncio.Lock()

    @classmethod
    @abstractmethod
    def type(cls) -> str:
        """Return the source type recorded with each dependency (e.g., "gradle")."""
        ...

    @abstractmethod
    def enabled(self, source_path: Optional[Path] = None) -> bool:
        """Check if the build tool governs the module and can be run.

        Must not raise, start processes or write files.

        Args:
            source_path: Module directory; defaults to the configured one.

        Returns:
            True if dependencies can be enumerated, False otherwise.
        """
        ...

    @abstractmethod
    async def enumerate(
        self,
        source_path: Optional[Path] = None,
        configurations: Optional[Iterable[str]] = None,
    ) -> list[Dependency]:
        """Ask the build tool for the module's resolved dependencies.

        Runs exactly one build tool invocation and does not memoize.

        Args:
            source_path: Module directory; defaults to the configured one.
            configurations: Configurations to enumerate; defaults to the configured
                ones.

        Returns:
            Dependencies with unique coordinates, test configurations excluded.
            Empty if the invocation failed.
        """
        ...

    async def dependencies(self) -> list[Dependency]:
        """Return the module's dependencies, enumerating on first use.

        Returns:
            The same list on every call for this instance.
        """
        async with self._lock:
            if self._dependencies is None:
                self._dependencies = await self.enumerate()
            return self._dependencies

    async def licenses(self) -> dict[Dependency, LicenseRecord]:
        """Resolve license records for every dependency.

        Dependencies are resolved one after another, so the build tool runs at
        most once at a time for this source.

        Returns:
            Dictionary mapping each dependency to its settled LicenseRecord.
        """
        dependencies = await self.dependencies()
        logger.info("Resolving licenses for %d dependencies", len(dependencies))

        results: dict[Dependency, LicenseRecord] = {}
        for dependency in dependencies:
            results[dependency] = await dependency.license()

        unknown = sum(1 for record in results.values() if record.is_unknown)
        logger.info(
            "License resolution complete: %d/%d known",
            len(results) - unknown,
            len(results),
        )
        return results

    def report_failure(self, failure: InvocationFailure) -> None:
        """Record and log an invocation failure."""
        self.failures.append(failure)
        logger.error("%s source failed: %s", self.type(), failure)
        if failure.stderr:
            logger.debug("%s stderr:\n%s", self.type(), failure.stderr)

    async def close(self) -> None:
        """Release resources held by the source's resolvers."""

    async def __aenter__(self) -> "BaseSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
