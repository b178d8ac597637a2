"""Error taxonomy for distribution runs.

Every failure is raised as a ``DistError`` subclass and propagated straight
up to the CLI, which prints it and exits non-zero.  Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Sequence


class DistError(RuntimeError):
    """Base class for all reported run failures."""


class FetchError(DistError):
    """Raised when the source archive cannot be downloaded."""


class ExtractionError(DistError):
    """Raised when the source archive cannot be extracted."""


class ConfigNotFoundError(DistError):
    """Raised when the buildpack descriptor is missing."""


class ConfigParseError(DistError):
    """Raised when the buildpack descriptor cannot be decoded."""


class APIError(DistError):
    """Raised when a release lookup or asset upload fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BuildToolError(DistError):
    """Raised when a container build or run exits non-zero."""

    def __init__(
        self, message: str, *, command: Sequence[str] = (), returncode: int | None = None
    ) -> None:
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode


class FilesystemWalkError(DistError):
    """Raised when the artifact output directory cannot be walked."""


class OperationCancelledError(DistError):
    """Raised at a call boundary once cancellation has been requested."""
