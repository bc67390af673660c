"""Logger hierarchy for pluginpack.

Pipeline components only call :func:`get_logger`. Handlers belong to whoever
runs the pipeline: the CLI installs them with :func:`configure_logging`, and
:func:`reset_logging` hands records back to the root logger so embedding
applications and test harnesses see them unchanged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

_LOGGER_NAME = "pluginpack"
_CONSOLE_FORMAT = f"[{_LOGGER_NAME}] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``pluginpack`` or one of its children, e.g. ``pluginpack.tree_ops``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def reset_logging() -> logging.Logger:
    """Close every installed handler and restore root propagation."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send build output to stderr and, optionally, to ``log_file``.

    Repeated calls replace the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = reset_logging()
    logger.setLevel(level)
    logger.propagate = False

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger", "reset_logging"]
