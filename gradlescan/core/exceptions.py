"""Custom exceptions for gradlescan."""


class ExtractionError(Exception):
    """Base exception for all extraction errors."""


class FileLoadError(ExtractionError):
    """Raised when the upfront batch read of package files fails."""

    def __init__(self, package_file: str, reason: str):
        self.package_file = package_file
        super().__init__(f"failed to load {package_file!r}: {reason}")


class UnidentifiableDependencyError(ExtractionError, ValueError):
    """Raised when a dependency has neither a package name nor a dep name."""


class PackageFileNotLoadedError(ExtractionError):
    """Raised when a package file has no loaded content to parse."""
