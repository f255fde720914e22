from __future__ import annotations

import logging
import sys

_LOGGER_NAME = "smarttask"
_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the package logger with a single stderr handler.

    Safe to call more than once: the handler is installed only on the first
    call, later calls just adjust the level. Unknown level names fall back to INFO.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    resolved = logging.getLevelName(level.upper())
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    if not any(getattr(h, "_smarttask", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        handler._smarttask = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
