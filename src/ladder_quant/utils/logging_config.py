"""Logger helpers shared by the simulation modules."""

from __future__ import annotations

import logging
from typing import Mapping

import pandas as pd

__all__ = ["get_logger", "log_dict"]

_PACKAGE = "ladder_quant"


def get_logger(name: str, *, level: int | None = None) -> logging.Logger:
    """Logger for ``name``; handlers are set by :func:`ladder_quant.config.configure_logging`."""

    package = logging.getLogger(_PACKAGE)
    if not package.handlers:
        package.addHandler(logging.NullHandler())
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def _inline(value: object) -> str:
    if isinstance(value, pd.Timestamp):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float):
        return f"{value:.4f}"
    return str(value)


def log_dict(
    logger: logging.Logger,
    message: str,
    payload: Mapping[str, object],
    level: int = logging.INFO,
) -> None:
    """Log ``payload`` inline for text handlers and as ``extra`` for JSON ones."""

    if not logger.isEnabledFor(level):
        return
    inline = ", ".join(f"{key}={_inline(value)}" for key, value in payload.items())
    logger.log(level, "%s | %s", message, inline, extra=dict(payload))
