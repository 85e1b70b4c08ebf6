from __future__ import annotations

import logging
import os
from typing import Optional


_LOGGER: Optional[logging.Logger] = None


def _level_from_env() -> int:
    name = os.getenv("FACEREC_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger() -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger("facerec")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(_level_from_env())
        _LOGGER = logger
    return _LOGGER
