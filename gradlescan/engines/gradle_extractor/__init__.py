"""Gradle extraction engine: dependencies and their registries from build files."""

from gradlescan.engines.gradle_extractor.extractor import extract_all_package_files
from gradlescan.engines.gradle_extractor.models import (
    PackageDependency,
    PackageFile,
    PackageRegistry,
)

__all__ = [
    "PackageDependency",
    "PackageFile",
    "PackageRegistry",
    "extract_all_package_files",
]
