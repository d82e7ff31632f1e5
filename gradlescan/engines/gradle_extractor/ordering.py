"""Processing order for non-Kotlin package files.

Variables flow from a file to the files parsed after it, so the order is
chosen so that definitions tend to come first:

  - a directory is processed before its subdirectories;
  - within a directory, properties and catalogs come before scripts;
  - ``build.gradle`` / ``settings.gradle`` come before other scripts,
    which are usually pulled in with ``apply from``.

This is a best-effort heuristic. Includes are not resolved statically, so
the result is not guaranteed to be a topological order.
"""

from __future__ import annotations

import posixpath
from functools import cmp_to_key

from gradlescan.engines.gradle_extractor.utils import (
    is_gradle_script_file,
    is_standard_script,
    to_absolute_path,
)


def _cmp(a: int | str, b: int | str) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def _compare_files(x: str, y: str) -> int:
    x_abs, y_abs = to_absolute_path(x), to_absolute_path(y)
    x_dir, y_dir = posixpath.dirname(x_abs), posixpath.dirname(y_abs)

    if x_dir == y_dir:
        x_script, y_script = is_gradle_script_file(x_abs), is_gradle_script_file(y_abs)
        if x_script != y_script:
            return 1 if x_script else -1
        if x_script:
            x_std, y_std = is_standard_script(x_abs), is_standard_script(y_abs)
            if x_std != y_std:
                return -1 if x_std else 1
        return _cmp(x_abs, y_abs)

    if x_dir.startswith(y_dir.rstrip("/") + "/"):
        return 1
    if y_dir.startswith(x_dir.rstrip("/") + "/"):
        return -1
    return _cmp(x_dir, y_dir)


def reorder_files(package_files: list[str]) -> list[str]:
    return sorted(package_files, key=cmp_to_key(_compare_files))
