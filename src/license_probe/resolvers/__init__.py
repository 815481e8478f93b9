"""License resolvers and classifiers.

This module provides the resolver that reads license manifests produced by
Gradle, the downloader for license texts and the default SPDX classifier.
"""

from license_probe.resolvers.base import BaseResolver, LicenseClassifier
from license_probe.resolvers.gradle import GradleLicenseResolver
from license_probe.resolvers.http import LicenseTextFetcher
from license_probe.resolvers.spdx import SpdxClassifier

__all__ = [
    "BaseResolver",
    "GradleLicenseResolver",
    "LicenseClassifier",
    "LicenseTextFetcher",
    "SpdxClassifier",
]
