"""Directory-scoped variable store shared across the files of one run."""

from __future__ import annotations

import posixpath

from gradlescan.engines.gradle_extractor.models import VariableData

ROOT_SCOPE = "/"


def _ancestry(directory: str) -> list[str]:
    """Return ``directory`` and its ancestors, root first."""
    chain: list[str] = []
    current = posixpath.normpath(posixpath.join(ROOT_SCOPE, directory))
    while True:
        chain.append(current)
        parent = posixpath.dirname(current)
        if parent == current:
            break
        current = parent
    chain.reverse()
    return chain


class VariableRegistry:
    """Mapping of directory -> variable name -> binding.

    A lookup for a directory merges every ancestor scope from ``/`` down, so
    the nearest definition of a name wins. Scopes only grow during a run.
    """

    def __init__(self) -> None:
        self._scopes: dict[str, dict[str, VariableData]] = {}

    def get(self, directory: str) -> dict[str, VariableData]:
        merged: dict[str, VariableData] = {}
        for scope in _ancestry(directory):
            merged.update(self._scopes.get(scope, {}))
        return merged

    def update(self, directory: str, new_vars: dict[str, VariableData]) -> None:
        key = _ancestry(directory)[-1]
        self._scopes.setdefault(key, {}).update(new_vars)

    def __contains__(self, directory: str) -> bool:
        return _ancestry(directory)[-1] in self._scopes
