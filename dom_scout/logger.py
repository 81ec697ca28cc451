# === FILE: dom_scout/logger.py ===
"""Logging for **DomScout**.

stdout carries scan reports only, so every handler here writes to *stderr* or
to a rotating file.  Components log through children of the ``DomScout``
logger (``DomScout.fetcher``, ``DomScout.pipeline``), which lets a single
``--log-level`` govern them while the records still name their origin::

    from dom_scout.logger import get_logger
    log = get_logger("fetcher")
    log.debug("attempt %d/%d for %s", n, total, url)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Union

ROOT_NAME: Final[str] = "DomScout"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LevelT = Union[int, str]


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """``DomScout`` itself, or its child for *component*."""
    return logging.getLogger(f"{ROOT_NAME}.{component}" if component else ROOT_NAME)


def _handlers(log_file: str | Path | None, fmt: str) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``DomScout`` logger tree.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Optional logfile, rotated at 5 MiB; console output is kept either way.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Drop handlers installed by an earlier call.
    """
    root = get_logger()
    root.setLevel(level)
    if replace_handlers:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
    for handler in _handlers(log_file, log_format):
        root.addHandler(handler)
    # reports go to stdout; keep the global root logger from echoing records there
    root.propagate = False
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """CLI shortcut: always replaces existing handlers."""
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "get_logger", "init_logging"]
