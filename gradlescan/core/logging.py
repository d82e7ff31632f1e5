"""structlog on top of stdlib logging, driven by :class:`Settings`.

Diagnostics always go to stderr so that ``scan_gradle.py --json`` keeps
stdout machine-readable. Only the ``gradlescan`` logger follows
``GRADLESCAN_LOG_LEVEL``; third-party loggers stay at WARNING.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any

import structlog

from gradlescan.core.config import Settings

_PACKAGE_LOGGER = "gradlescan"


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def build_logging_config(
    settings: Settings, processors: list[structlog.types.Processor]
) -> dict[str, Any]:
    """The ``dictConfig`` payload for *settings*."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "gradlescan": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": processors,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(settings.log_format),
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "gradlescan",
            },
        },
        "root": {"handlers": ["stderr"], "level": "WARNING"},
        "loggers": {_PACKAGE_LOGGER: {"level": settings.log_level}},
    }


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and stdlib logging (from the environment by default)."""
    settings = settings or Settings.from_env()
    processors = _processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(build_logging_config(settings, processors))
