"""Exception hierarchy for the visual analysis engine."""

from __future__ import annotations

from pathlib import Path


class VisualAnalysisError(Exception):
    """Base class for all engine errors."""


class DecodeError(VisualAnalysisError):
    """Raised when an image cannot be read or decoded into a pixel buffer."""

    def __init__(self, source: str | Path, reason: str) -> None:
        super().__init__(f"Cannot decode image {source}: {reason}")
        self.source = str(source)
        self.reason = reason


class DimensionMismatchError(VisualAnalysisError):
    """Raised when two buffers must share dimensions but do not."""

    def __init__(self, reference: tuple[int, int], test: tuple[int, int]) -> None:
        super().__init__(
            "Images must have the same dimensions for pixel comparison "
            f"(reference {reference[0]}x{reference[1]}, test {test[0]}x{test[1]})"
        )
        self.reference = reference
        self.test = test


class EmptyBufferError(VisualAnalysisError):
    """Raised when an analyzer receives a zero-sized pixel buffer."""


class WriteError(VisualAnalysisError):
    """Raised when an output artifact cannot be written."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class ConfigError(VisualAnalysisError, ValueError):
    """Raised for unknown or invalid configuration values."""


class ReportFormatError(VisualAnalysisError):
    """Raised when a test result document cannot be parsed."""


class AnalysisError(VisualAnalysisError):
    """Raised when no comparison metric could be computed for a pair."""
