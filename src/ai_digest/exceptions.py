from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AiDigestError(Exception):
    """Base exception for errors that abort an aggregation run."""

    def __str__(self) -> str:
        return getattr(self, "message", self.__class__.__name__)


@dataclass(frozen=True)
class PathResolutionError(AiDigestError):
    """Raised when an input path cannot be stat-ed."""

    path: str
    reason: str

    @property
    def message(self) -> str:
        return f"Cannot resolve input path {self.path!r}: {self.reason}"


@dataclass(frozen=True)
class IgnoreFileReadError(AiDigestError):
    """Raised when the ignore file exists but cannot be read."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Cannot read ignore file {self.path}: {self.reason}"


@dataclass(frozen=True)
class OutputSizeMismatchError(AiDigestError):
    """Raised when the written output does not have the expected size on disk."""

    path: Path
    expected: int
    actual: int

    @property
    def message(self) -> str:
        return f"File size mismatch after writing {self.path}: expected {self.expected} bytes, found {self.actual}"
