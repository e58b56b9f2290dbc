import logging
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Generator

import structlog
from tqdm.contrib.logging import logging_redirect_tqdm as _redirect_tqdm

from dcmframes.loggers.logging_config import ROOT_LOGGER_NAME, configure_logging


@contextmanager
def temporary_log_level(
    logger: structlog.stdlib.BoundLogger, level: str
) -> Generator[None, Any, None]:
    """
    Temporarily change the log level of a logger within a context.

    Examples
    --------
    >>> with temporary_log_level(logger, "ERROR"):
    ...     logger.warning("This won't be logged")
    """
    original_level = logger.level
    logger.setLevel(getattr(logging, level.upper()))
    try:
        yield
    finally:
        logger.setLevel(original_level)


def tqdm_logging_redirect(
    logger_name: str = ROOT_LOGGER_NAME,
) -> AbstractContextManager[None]:
    """Route log records through tqdm so progress bars stay intact."""
    return _redirect_tqdm([logging.getLogger(logger_name)])


logger = configure_logging()

__all__ = [
    "configure_logging",
    "logger",
    "temporary_log_level",
    "tqdm_logging_redirect",
]
