"""Dependency sources for build tools.

This module provides sources that ask a build tool for a module's resolved
dependencies and resolve their licenses on demand.
"""

from typing import Optional

from license_probe.cache import ProbeCache
from license_probe.config import SourceConfig
from license_probe.shell import Executor
from license_probe.sources.base import BaseSource
from license_probe.sources.gradle import GradleSource

__all__ = [
    "BaseSource",
    "GradleSource",
    "get_source",
]

# Registry of available sources in priority order
_SOURCES: list[type[BaseSource]] = [
    GradleSource,
]


def get_source(
    config: SourceConfig,
    cache: Optional[ProbeCache] = None,
    executor: Optional[Executor] = None,
) -> Optional[BaseSource]:
    """Get the first enabled source for a module.

    Args:
        config: Settings for the module to scan.
        cache: Optional cache to share between sources of one scan.
        executor: Optional command runner; defaults to shell.execute.

    Returns:
        An enabled source instance, or None if no build tool governs the module.
    """
    for source_cls in _SOURCES:
        source = source_cls(config, cache=cache, executor=executor)
        if source.enabled():
            return source

    return None
