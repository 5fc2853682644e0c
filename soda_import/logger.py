"""Logger configuration."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any

from loguru import logger

__all__ = ["config_logger"]


def config_logger(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format=_format,
        level=level,
        colorize=sys.stderr.isatty(),
        backtrace=False,
        diagnose=False,
    )


def _format(record: Mapping[str, Any]) -> str:
    line = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan> - <level>{message}</level>"
    )
    if record["extra"]:
        line += " <dim>{extra}</dim>"
    return line + "\n{exception}"
