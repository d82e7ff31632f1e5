"""Package-file discovery: find the Gradle files of a checkout."""

from __future__ import annotations

from pathlib import Path

FILE_PATTERNS = [
    "**/*.gradle",
    "**/*.gradle.kts",
    "**/gradle.properties",
    "**/*.versions.toml",
    "**/versions.props",
    "**/versions.lock",
    "**/buildSrc/**/*.kt",
]

_SKIPPED_DIRS = {".git", ".gradle", "build", "node_modules"}


def discover_package_files(repo_path: Path) -> list[str]:
    """Walk *repo_path* and return matching files as sorted relative POSIX paths."""
    found: set[str] = set()
    for pattern in FILE_PATTERNS:
        for hit in repo_path.glob(pattern):
            rel = hit.relative_to(repo_path)
            if not hit.is_file() or _SKIPPED_DIRS.intersection(rel.parts[:-1]):
                continue
            found.add(rel.as_posix())
    return sorted(found)
