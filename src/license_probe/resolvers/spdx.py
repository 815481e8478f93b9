"""Default license classifier based on SPDX identifiers.

This classifier maps the license names reported by build tools (usually
normalized by the build tool's own license plugin) to lowercase SPDX keys.
When no name is recognised it looks for well known license headers in the
downloaded texts. It does not perform fuzzy full-text matching.
"""

import logging
import re
from functools import lru_cache
from typing import Iterable, Optional

from license_expression import get_spdx_licensing

logger = logging.getLogger(__name__)

OTHER_LICENSE = "other"
NO_LICENSE = "none"

# Initialize SPDX licensing library for normalization
SPDX = get_spdx_licensing()

# Common license names found in Maven POMs and license report output
LICENSE_MAP = {
    "Apache 2.0": "Apache-2.0",
    "Apache 2": "Apache-2.0",
    "Apache-2.0": "Apache-2.0",
    "Apache License 2.0": "Apache-2.0",
    "Apache License, Version 2.0": "Apache-2.0",
    "Apache Software License - Version 2.0": "Apache-2.0",
    "Apache Software License, Version 2.0": "Apache-2.0",
    "The Apache License, Version 2.0": "Apache-2.0",
    "The Apache Software License, Version 2.0": "Apache-2.0",
    "MIT License": "MIT",
    "The MIT License": "MIT",
    "MIT license": "MIT",
    "BSD License": "BSD-3-Clause",
    "BSD 3-Clause License": "BSD-3-Clause",
    "New BSD License": "BSD-3-Clause",
    "The BSD License": "BSD-3-Clause",
    "BSD 2-Clause License": "BSD-2-Clause",
    "Eclipse Public License - v 1.0": "EPL-1.0",
    "Eclipse Public License 1.0": "EPL-1.0",
    "Eclipse Public License - v 2.0": "EPL-2.0",
    "Eclipse Public License v2.0": "EPL-2.0",
    "Eclipse Distribution License - v 1.0": "BSD-3-Clause",
    "GNU General Public License v3": "GPL-3.0",
    "GNU General Public License, version 2": "GPL-2.0",
    "GNU Lesser General Public License v3": "LGPL-3.0",
    "GNU Lesser General Public License, version 2.1": "LGPL-2.1",
    "CDDL + GPLv2 with classpath exception": "CDDL-1.0",
    "Mozilla Public License 2.0": "MPL-2.0",
    "Mozilla Public License, Version 2.0": "MPL-2.0",
    "ISC License": "ISC",
    "Public Domain": "CC0-1.0",
}

# Common SPDX IDs for case-insensitive matching
COMMON_SPDX = [
    "MIT", "Apache-2.0", "GPL-3.0", "GPL-2.0", "LGPL-3.0", "LGPL-2.1",
    "BSD-3-Clause", "BSD-2-Clause", "ISC", "MPL-2.0", "EPL-2.0", "EPL-1.0",
]
COMMON_SPDX_PATTERNS = [
    (re.compile(rf"\b{re.escape(spdx_id)}\b", re.IGNORECASE), spdx_id)
    for spdx_id in COMMON_SPDX
]

# Headers that identify a license text without full-text matching
TEXT_PATTERNS = [
    (re.compile(r"Apache License\s+Version 2\.0", re.IGNORECASE), "Apache-2.0"),
    (re.compile(r"Eclipse Public License\s*-?\s*v(?:ersion)?\s*2\.0", re.IGNORECASE), "EPL-2.0"),
    (re.compile(r"Eclipse Public License\s*-?\s*v(?:ersion)?\s*1\.0", re.IGNORECASE), "EPL-1.0"),
    (re.compile(r"Mozilla Public License,?\s+Version 2\.0", re.IGNORECASE), "MPL-2.0"),
    (re.compile(r"Permission is hereby granted, free of charge", re.IGNORECASE), "MIT"),
]


@lru_cache(maxsize=1024)
def _normalize_license_name(license_name: str) -> Optional[str]:
    """Normalize a declared license name to an SPDX identifier (cached helper).

    Args:
        license_name: Raw license name from a manifest.

    Returns:
        SPDX identifier, or None if not recognised.
    """
    license_name = license_name.strip()
    if not license_name or license_name.upper() == "UNKNOWN":
        return None

    if license_name in LICENSE_MAP:
        return LICENSE_MAP[license_name]

    try:
        parsed = SPDX.parse(license_name, validate=True)
        if parsed:
            return str(parsed).strip()
    except Exception as e:
        # Names are free text; the SPDX parser rejects most of them.
        logger.debug("SPDX parser rejected license name '%s': %s", license_name, e)

    # Whole words only: "Unlimited" must not match MIT
    hyphenated = re.sub(r"\s+", "-", license_name)
    for pattern, spdx_id in COMMON_SPDX_PATTERNS:
        if pattern.search(license_name) or pattern.search(hyphenated):
            return spdx_id

    logger.debug("Could not normalize license: %s", license_name)
    return None


def _identify_license_text(text: str) -> Optional[str]:
    for pattern, spdx_id in TEXT_PATTERNS:
        if pattern.search(text):
            return spdx_id
    return None


class SpdxClassifier:
    """Classifier that produces lowercase SPDX keys.

    Declared names win over texts. If the names (or, failing that, the
    texts) identify more than one license the result is "other", mirroring
    how multi-license dependencies are flagged for manual review.
    """

    def classify(self, names: Iterable[str], texts: Iterable[str]) -> str:
        """Classify a dependency's declared licenses.

        Args:
            names: Declared license names from the manifest.
            texts: License texts that were downloaded or read.

        Returns:
            Lowercase SPDX key (e.g., "apache-2.0"), "other" if the licenses
            were not recognised or are ambiguous, "none" if nothing was given.
        """
        names = [name for name in names if name and name.strip()]
        texts = [text for text in texts if text and text.strip()]
        if not names and not texts:
            return NO_LICENSE

        keys = {_normalize_license_name(name) for name in names}
        keys.discard(None)
        if not keys:
            keys = {_identify_license_text(text) for text in texts}
            keys.discard(None)

        if len(keys) != 1:
            return OTHER_LICENSE
        return keys.pop().lower()
