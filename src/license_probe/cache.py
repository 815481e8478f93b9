"""In-memory cache shared by the resolvers of one source.

Manifest generation and license downloads are expensive, so their results
are kept for the lifetime of a cache instance. A source creates its own
cache unless one is passed in, which lets a whole scan session share
downloads without leaking state between runs.
"""

import asyncio
from pathlib import Path
from typing import Optional

from license_probe.models import DependencyCoordinate, ManifestRow

Manifest = dict[DependencyCoordinate, list[ManifestRow]]
Configurations = tuple[str, ...]


class ProbeCache:
    """Cache for license manifests and downloaded license texts.

    Manifests are keyed by module directory and the configurations the
    report was generated for, since a report only lists those. A manifest
    stored as None records a failed generation attempt, so it is not
    retried. The same holds for license texts.

    Attributes:
        lock: Serializes build tool invocations made through this cache.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._manifests: dict[tuple[Path, Configurations], Optional[Manifest]] = {}
        self._texts: dict[str, Optional[str]] = {}
        self.lock = asyncio.Lock()

    def has_manifest(self, source_path: Path, configurations: Configurations) -> bool:
        return (source_path, tuple(configurations)) in self._manifests

    def get_manifest(
        self, source_path: Path, configurations: Configurations
    ) -> Optional[Manifest]:
        """Retrieve the manifest generated for a module and configurations.

        Args:
            source_path: Module directory the manifest was generated for.
            configurations: Configurations the report covered, in order.

        Returns:
            The manifest, or None on a miss or a recorded failure.
        """
        return self._manifests.get((source_path, tuple(configurations)))

    def set_manifest(
        self,
        source_path: Path,
        configurations: Configurations,
        manifest: Optional[Manifest],
    ) -> None:
        self._manifests[(source_path, tuple(configurations))] = manifest

    def has_text(self, url: str) -> bool:
        return url in self._texts

    def get_text(self, url: str) -> Optional[str]:
        return self._texts.get(url)

    def set_text(self, url: str, text: Optional[str]) -> None:
        self._texts[url] = text

    def clear(self) -> None:
        """Drop every cached manifest and text."""
        self._manifests.clear()
        self._texts.clear()

    def info(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache information:
                - manifests: Number of cached manifests (including failures)
                - texts: Number of cached license texts (including failures)
        """
        return {
            "manifests": len(self._manifests),
            "texts": len(self._texts),
        }
