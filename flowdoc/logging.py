"""Logging setup for flowdoc runs.

Components log through ``get_logger("<component>")``. Console lines are tagged
with the emitting component, e.g. ``[flowdoc:packages] WARNING ...``.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "flowdoc"
_CONSOLE_FORMAT = "[%(component)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def component_tag(logger_name: str) -> str:
    """Shorten ``flowdoc.writer`` to ``flowdoc:writer``; other names pass through."""
    prefix = f"{_LOGGER_NAME}."
    if logger_name.startswith(prefix):
        return f"{_LOGGER_NAME}:{logger_name[len(prefix):]}"
    return logger_name


class ComponentFormatter(logging.Formatter):
    """Formatter that exposes ``%(component)s`` for flowdoc records."""

    def format(self, record: logging.LogRecord) -> str:
        record.component = component_tag(record.name)
        return super().format(record)


def level_for(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console and optional file handlers to the flowdoc logger.

    ``verbose`` wins over ``quiet``. Handlers from an earlier call are
    replaced, so repeated CLI invocations in one process do not duplicate
    output. The log file's parent directory is created when missing.
    """
    level = level_for(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(ComponentFormatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(ComponentFormatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["ComponentFormatter", "component_tag", "configure_logging", "get_logger", "level_for"]
