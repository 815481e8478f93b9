"""Base interfaces for license resolvers and classifiers.

Resolvers turn a dependency into a settled LicenseRecord, usually by asking
the build tool for a license manifest. Classifiers map declared license
names and texts to a license key; they are pluggable so a full text
matcher can replace the default one.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, Protocol

from license_probe.models import LicenseRecord

if TYPE_CHECKING:
    from license_probe.models import Dependency


class LicenseClassifier(Protocol):
    """Maps declared license names and license texts to a license key."""

    def classify(self, names: Iterable[str], texts: Iterable[str]) -> str:
        """Return a lowercase license key, "other" or "none"."""
        ...


class BaseResolver(ABC):
    """Abstract base class for license resolvers.

    Resolvers are only called by Dependency.license(), which guarantees a
    single call per dependency.
    """

    @abstractmethod
    async def resolve(self, dependency: "Dependency") -> LicenseRecord:
        """Resolve license data for a dependency.

        Args:
            dependency: Dependency to resolve.

        Returns:
            The LicenseRecord for the dependency.

        Raises:
            ResolutionFailure: If no license data could be found.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the resolver name for logging/debugging.

        Returns:
            Name like "Gradle".
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the resolver."""
