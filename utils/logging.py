"""Logging helpers for the raster filter app."""

from __future__ import annotations

import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "rasterfilter"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_ROOT: Optional[logging.Logger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the project logger, or a child of it for ``name``."""

    global _ROOT
    if _ROOT is None:
        _ROOT = logging.getLogger(ROOT_LOGGER_NAME)
        if not _ROOT.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            _ROOT.addHandler(handler)
        _ROOT.setLevel(os.environ.get("RASTERFILTER_LOG_LEVEL", "INFO").upper())
    if not name:
        return _ROOT
    return _ROOT.getChild(name)


def set_level(level: str | int) -> None:
    get_logger().setLevel(level.upper() if isinstance(level, str) else level)
