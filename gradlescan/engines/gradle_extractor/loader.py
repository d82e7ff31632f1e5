"""Batch loading of package file contents."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from gradlescan.core.exceptions import FileLoadError


@runtime_checkable
class FileLoader(Protocol):
    """Loads many files at once; every requested path gets an entry."""

    async def load_all(self, package_files: Iterable[str]) -> dict[str, str | None]: ...


class LocalFileLoader:
    """Reads files relative to a local checkout.

    Missing files map to ``None``; other I/O errors abort the whole batch.
    """

    def __init__(self, local_dir: Path) -> None:
        self._local_dir = local_dir

    def _read(self, package_file: str) -> str | None:
        path = self._local_dir / package_file
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise FileLoadError(package_file, str(exc)) from exc

    async def load_all(self, package_files: Iterable[str]) -> dict[str, str | None]:
        unique = list(dict.fromkeys(package_files))
        contents = await asyncio.gather(
            *(asyncio.to_thread(self._read, package_file) for package_file in unique)
        )
        return dict(zip(unique, contents))
