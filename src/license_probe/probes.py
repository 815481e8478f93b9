"""Generated build tool scripts used to extract structured data.

A probe is a short script rendered from a versioned template and written
next to the project under a unique ``license-*`` name, together with a
scratch directory for any report files the build tool writes. Both are
removed when the :func:`probe_script` context exits, whatever the outcome.
"""

import contextlib
import logging
import os
import shutil
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path

from jinja2 import Environment, StrictUndefined, Template

logger = logging.getLogger(__name__)

PROBE_TEMPLATE_VERSION = 1
PROBE_PREFIX = "license-"
REPORT_PREFIX = ".license-"


@dataclass(frozen=True)
class ProbeArtifact:
    """Files owned by one probe invocation.

    Attributes:
        script: Rendered script passed to the build tool.
        output_dir: Scratch directory for files the build tool writes.
    """

    script: Path
    output_dir: Path


def groovy_string(value: object) -> str:
    """Quote a value as a single-quoted Groovy string literal."""
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def groovy_list(values: Iterable[object]) -> str:
    """Render values as a Groovy list of string literals."""
    return "[" + ", ".join(groovy_string(value) for value in values) + "]"


def _environment() -> Environment:
    env = Environment(
        autoescape=False,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["groovy"] = groovy_string
    env.filters["groovy_list"] = groovy_list
    return env


def load_template(name: str) -> Template:
    """Load a bundled probe template.

    Args:
        name: Template file name inside ``license_probe.templates``.

    Returns:
        The compiled Jinja2 template.
    """
    template_content = (
        files("license_probe.templates").joinpath(name).read_text(encoding="utf-8")
    )
    return _environment().from_string(template_content)


def render_probe(name: str, **context: object) -> str:
    """Render a probe template with the template version filled in."""
    return load_template(name).render(
        template_version=PROBE_TEMPLATE_VERSION, **context
    )


@contextlib.contextmanager
def probe_script(
    directory: Path, template: str, suffix: str = ".gradle", **context: object
) -> Iterator[ProbeArtifact]:
    """Write a probe script and remove it and its outputs on exit.

    The template receives ``output_dir`` in addition to ``context`` so the
    build tool can be told where to put its report files.

    Args:
        directory: Working directory to create the probe in.
        template: Template file name inside ``license_probe.templates``.
        suffix: File extension for the script.
        **context: Values passed to the template.

    Yields:
        The ProbeArtifact describing the script and its scratch directory.
    """
    output_dir = Path(tempfile.mkdtemp(prefix=REPORT_PREFIX, dir=directory))
    script = None
    try:
        fd, script_name = tempfile.mkstemp(
            prefix=PROBE_PREFIX, suffix=suffix, dir=directory
        )
        script = Path(script_name)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_probe(template, output_dir=output_dir.as_posix(), **context))

        logger.debug("Created probe %s", script)
        yield ProbeArtifact(script=script, output_dir=output_dir)
    finally:
        if script is not None:
            script.unlink(missing_ok=True)
        shutil.rmtree(output_dir, ignore_errors=True)
        logger.debug("Removed probe %s", script or output_dir)
