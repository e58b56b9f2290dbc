"""stdlib logging configuration with structlog formatting.

Events always go to stderr through structlog's `ConsoleRenderer`. When
``DCMFRAMES_LOG_FILE`` names a file, the same events are also appended to
it as one JSON object per line, which suits batch runs over large study
directories.

Environment variables
---------------------
DCMFRAMES_LOG_LEVEL
    Initial level, ``WARNING`` when unset.
DCMFRAMES_LOG_FILE
    Optional path of the JSON lines log file.
DCMFRAMES_LOG_TIMEZONE
    Zone of the timestamps, ``UTC`` when unset.
"""

from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.typing import Processor

from dcmframes.loggers.processors import (
    DicomValueRenderer,
    ZonedTimeStamper,
    collapse_callsite,
)

__all__ = ["DEFAULT_LOG_LEVEL", "ROOT_LOGGER_NAME", "configure_logging"]

ROOT_LOGGER_NAME = "dcmframes"
ENV_PREFIX = "DCMFRAMES"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_LOG_LEVEL = "WARNING"


def env_setting(name: str, default: str | None = None) -> str | None:
    return os.environ.get(f"{ENV_PREFIX}_{name}", default)


def _validate_level(level: str) -> str:
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        msg = f"Invalid logging level: {level}"
        raise ValueError(msg)
    return level_upper


def _shared_processors(base_dir: Path | None) -> list[Processor]:
    """Run on every event, from structlog and from plain stdlib loggers alike."""
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        CallsiteParameterAdder(
            [
                CallsiteParameter.MODULE,
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
        DicomValueRenderer(base_dir=base_dir),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.StackInfoRenderer(),
    ]


def _formatters(shared: list[Processor], timezone: str) -> dict[str, Any]:
    strip_meta = structlog.stdlib.ProcessorFormatter.remove_processors_meta
    return {
        "console": {
            "()": structlog.stdlib.ProcessorFormatter,
            "foreign_pre_chain": shared,
            "processors": [
                ZonedTimeStamper(fmt="%H:%M:%S", timezone=timezone),
                collapse_callsite,
                strip_meta,
                structlog.dev.ConsoleRenderer(
                    colors=True,
                    sort_keys=False,
                    exception_formatter=structlog.dev.RichTracebackFormatter(
                        width=-1, show_locals=False
                    ),
                ),
            ],
        },
        "jsonl": {
            "()": structlog.stdlib.ProcessorFormatter,
            "foreign_pre_chain": shared,
            "processors": [
                ZonedTimeStamper(timezone=timezone),
                strip_meta,
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ],
        },
    }


def configure_logging(
    level: str | None = None,
    log_file: Path | str | None = None,
    base_dir: Path | None = None,
) -> structlog.stdlib.BoundLogger:
    """(Re)configure the ``dcmframes`` logger and return it.

    Parameters
    ----------
    level : str | None
        One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to
        ``DCMFRAMES_LOG_LEVEL``, then ``WARNING``.
    log_file : Path | str | None
        JSON lines file to append to. Defaults to ``DCMFRAMES_LOG_FILE``;
        no file is written when neither is set.
    base_dir : Path | None
        `Path` values in events are shown relative to this directory.

    Raises
    ------
    ValueError
        If `level` is not a valid logging level.
    """
    level = _validate_level(level or env_setting("LOG_LEVEL") or DEFAULT_LOG_LEVEL)
    log_file = log_file or env_setting("LOG_FILE")
    timezone = env_setting("LOG_TIMEZONE", "UTC") or "UTC"
    shared = _shared_processors(base_dir)

    handlers: dict[str, dict[str, Any]] = {
        "console": {"class": "logging.StreamHandler", "formatter": "console"},
    }
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["jsonl"] = {
            "class": "logging.FileHandler",
            "formatter": "jsonl",
            "filename": str(log_path),
            "encoding": "utf-8",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": _formatters(shared, timezone),
            "handlers": handlers,
            "loggers": {
                ROOT_LOGGER_NAME: {
                    "handlers": list(handlers),
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(ROOT_LOGGER_NAME)
