"""Logging setup for the ``b2resilience`` logger tree."""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

from b2resilience.config import ResilienceConfig

PACKAGE_LOGGER = "b2resilience"
_LEVEL_ALIASES = {"WARN": "WARNING"}
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def resolve_level(level: str) -> int:
    name = level.strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    value = py_logging.getLevelName(name)
    if isinstance(value, int):
        return value
    return py_logging.INFO


def _open_file_handler(log_file: str | Path) -> py_logging.Handler | None:
    path = Path(log_file).expanduser().resolve()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return py_logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Route retry and reauth records from every package module to ``stream``.

    Handlers installed by an earlier call are replaced. The optional file
    handler always records at DEBUG so retry waits can be reconstructed.
    """
    resolved = resolve_level(level)
    logger = py_logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    formatter = py_logging.Formatter(_FORMAT)
    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = _open_file_handler(log_file)
        if file_handler is None:
            logger.warning("Could not open log file %s", log_file)
        else:
            file_handler.setLevel(py_logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def configure_from_config(
    config: ResilienceConfig,
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    return configure_logging(config.log_level, stream, log_file=log_file)
