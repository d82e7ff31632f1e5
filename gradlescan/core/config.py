"""Environment-driven settings and per-run extraction context."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_LOG_FORMAT = "console"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings read from ``GRADLESCAN_*`` environment variables."""

    log_level: str = _DEFAULT_LOG_LEVEL
    log_format: str = _DEFAULT_LOG_FORMAT
    repository: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        log_format = os.environ.get("GRADLESCAN_LOG_FORMAT", _DEFAULT_LOG_FORMAT).lower()
        if log_format not in ("console", "json"):
            log_format = _DEFAULT_LOG_FORMAT
        return cls(
            log_level=os.environ.get("GRADLESCAN_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper(),
            log_format=log_format,
            repository=os.environ.get("GRADLESCAN_REPOSITORY") or None,
        )


@dataclass
class ExtractConfig:
    """Context for one extraction run.

    ``repository`` is a label only (it shows up in diagnostics);
    ``local_dir`` is the checkout that package-file paths are relative to.
    """

    local_dir: Path = field(default_factory=Path.cwd)
    repository: str | None = None

    @classmethod
    def from_env(cls, local_dir: Path) -> ExtractConfig:
        settings = Settings.from_env()
        return cls(local_dir=local_dir, repository=settings.repository or local_dir.name)
