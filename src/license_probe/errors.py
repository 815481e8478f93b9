"""Exception types raised while probing a build tool.

None of these escape the public adapter API: sources turn them into empty
enumerations and dependencies turn them into unknown license records.
"""

from typing import Optional, Sequence


class LicenseProbeError(Exception):
    """Base class for license_probe errors."""


class ToolUnavailable(LicenseProbeError):
    """The build tool executable could not be located."""


class InvocationFailure(LicenseProbeError):
    """A build tool invocation failed or produced output we cannot parse.

    Attributes:
        command: The command line that was run, if any.
        returncode: Process exit code, or None if the process never exited normally.
        stderr: Captured standard error, if any.
    """

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command is not None else None
        self.returncode = returncode
        self.stderr = stderr


class ResolutionFailure(LicenseProbeError):
    """License data for a single dependency could not be resolved."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason
