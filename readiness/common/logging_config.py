"""Shared logging configuration for the readiness CLI.

Usage::

    from readiness.common.logging_config import configure_logging
    configure_logging()
"""
from __future__ import annotations

import logging
import sys
from typing import Union

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Adapter sessions are chatty at DEBUG; keep them out of the decision log.
_NOISY_LOGGERS = ("urllib3", "requests")


def resolve_level(level: Union[int, str]) -> int:
    """Accept ``logging.INFO`` or ``"info"`` / ``"INFO"``."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> None:
    """Set up root logging with a consistent format.

    Call once at the CLI entry point. A second call only adjusts the level.
    """
    resolved = resolve_level(level)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(resolved)
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    root.setLevel(resolved)
    root.addHandler(handler)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
