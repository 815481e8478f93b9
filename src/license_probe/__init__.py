"""License Probe - dependency and license inventories from build tools.

This package asks a project's own build tool for its resolved dependencies
and resolves each dependency's license data on demand.
"""

__version__ = "0.1.0"

from license_probe.config import SourceConfig
from license_probe.models import (
    Dependency,
    DependencyCoordinate,
    DependencyRecord,
    LicenseEntry,
    LicenseRecord,
)

__all__ = [
    "__version__",
    "Dependency",
    "DependencyCoordinate",
    "DependencyRecord",
    "LicenseEntry",
    "LicenseRecord",
    "SourceConfig",
]
