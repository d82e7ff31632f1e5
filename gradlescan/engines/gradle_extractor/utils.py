"""Path classification helpers for Gradle package files."""

from __future__ import annotations

import posixpath

GCV_LOCK_FILE = "versions.lock"
GCV_LOCK_HEADER = "# Run ./gradlew --write-locks to regenerate this file"


def to_absolute_path(package_file: str) -> str:
    return posixpath.normpath(posixpath.join("/", package_file))


def package_file_dir(package_file: str) -> str:
    return posixpath.dirname(to_absolute_path(package_file))


def sibling_file(package_file: str, name: str) -> str:
    return posixpath.join(posixpath.dirname(package_file), name)


def is_props_file(path: str) -> bool:
    return posixpath.basename(path) == "gradle.properties"


def is_toml_file(path: str) -> bool:
    return path.endswith(".toml")


def is_gcv_props_file(path: str) -> bool:
    return posixpath.basename(path) == "versions.props"


def is_kotlin_source_file(path: str) -> bool:
    return path.endswith(".kt")


def is_gradle_script_file(path: str) -> bool:
    return path.endswith((".gradle", ".gradle.kts"))


def is_standard_script(path: str) -> bool:
    """``build.gradle`` / ``settings.gradle`` and their ``.kts`` forms."""
    return posixpath.basename(path) in (
        "build.gradle",
        "build.gradle.kts",
        "settings.gradle",
        "settings.gradle.kts",
    )


def uses_gcv(props_file: str, file_contents: dict[str, str | None]) -> bool:
    """Whether the consistent-versions plugin owns *props_file*.

    The plugin writes a ``versions.lock`` next to ``versions.props``,
    starting with a fixed header.
    """
    lock_content = file_contents.get(sibling_file(props_file, GCV_LOCK_FILE))
    return bool(lock_content and lock_content.startswith(GCV_LOCK_HEADER))
