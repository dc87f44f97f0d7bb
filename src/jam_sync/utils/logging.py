"""Console formatter used by ``logging_config.json``."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

_RESET = "\033[0m"
_DIM = "\033[2m"


class ColoredFormatter(logging.Formatter):
    """Colors the level name and dims the logger name on a terminal.

    Plain output is kept when ``NO_COLOR`` is set or the target stream is not
    interactive, so redirected logs stay free of escape codes.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def __init__(self, *args: Any, stream: IO[str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream

    def _colors_enabled(self) -> bool:
        if "NO_COLOR" in os.environ:
            return False
        isatty = getattr(self._stream or sys.stderr, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        if not self._colors_enabled():
            return super().format(record)
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{self.COLORS.get(record.levelno, '')}{record.levelname}{_RESET}"
        tinted.name = f"{_DIM}{record.name}{_RESET}"
        return super().format(tinted)
