"""Deploybundle error hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of error for classification and handling."""

    IO = "io"
    CONFIGURATION = "configuration"
    CANCELLATION = "cancellation"
    INTERNAL = "internal"


class BundleError(Exception):
    """Base error for all deploybundle exceptions."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.details: dict[str, Any] = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, category={self.category!r})"


class RootNotFoundError(BundleError):
    """Application root does not exist or is not a directory."""

    def __init__(self, root: str) -> None:
        super().__init__(
            f"Application root is not a directory: {root}",
            category=ErrorCategory.CONFIGURATION,
            details={"root": root},
        )
        self.root = root


class ManifestWriteError(BundleError):
    """The manifest file could not be written.

    ``files`` still holds the filtered list so callers can fall back to
    passing paths directly.
    """

    def __init__(self, path: str, reason: str, *, files: list[str] | None = None) -> None:
        super().__init__(
            f"Cannot write manifest to {path}: {reason}",
            category=ErrorCategory.IO,
            retryable=True,
            details={"path": path},
        )
        self.path = path
        self.files: list[str] = list(files or [])


class ManifestReadError(BundleError):
    """A manifest file could not be read back."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot read manifest {path}: {reason}",
            category=ErrorCategory.IO,
            details={"path": path},
        )
        self.path = path


class CancellationError(BundleError):
    """Operation was cancelled by the caller."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, category=ErrorCategory.CANCELLATION, retryable=False)


class ConfigurationError(BundleError):
    """Invalid configuration value."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.CONFIGURATION, retryable=False)
