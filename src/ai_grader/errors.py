"""Exception types raised by the grader."""

from __future__ import annotations


class GraderError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(GraderError):
    """Settings are missing or invalid."""


class DirectoryNotFoundError(GraderError):
    """The directory to review does not exist or is not a directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Directory not found: {path}")
        self.path = path


class ScanError(GraderError):
    """A filesystem error aborted a scan. The underlying error is the __cause__."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Failed to read {path}: {message}")
        self.path = path


class AIInvocationError(GraderError):
    """A model call failed, timed out, or returned output that did not match the schema."""

    def __init__(self, object_name: str, message: str) -> None:
        super().__init__(f"Model request for {object_name} failed: {message}")
        self.object_name = object_name
