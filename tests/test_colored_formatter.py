"""Tests for the console log formatter."""

import json
import logging
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest

from jam_sync.utils.logging import ColoredFormatter

RESET = "\033[0m"
DIM = "\033[2m"


class _TtyStream(StringIO):
    def isatty(self) -> bool:
        return True


def _record(level: int, message: str = "SYNC p1: idle -> loading") -> logging.LogRecord:
    return logging.LogRecord(
        name="jam_sync.application.services.sync_engine",
        level=level,
        pathname="sync_engine.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def _formatter(stream=None) -> ColoredFormatter:
    return ColoredFormatter("%(levelname)s | %(name)s | %(message)s", stream=stream)


class TestColoredFormatter:
    @pytest.mark.parametrize("level", sorted(ColoredFormatter.COLORS))
    def test_level_colored_on_tty(self, level: int):
        output = _formatter(_TtyStream()).format(_record(level))

        assert output.startswith(ColoredFormatter.COLORS[level])
        assert RESET in output

    def test_logger_name_dimmed(self):
        output = _formatter(_TtyStream()).format(_record(logging.INFO))

        assert f"{DIM}jam_sync.application.services.sync_engine{RESET}" in output

    def test_no_color_env_disables_colors(self):
        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = _formatter(_TtyStream()).format(_record(logging.WARNING))

        assert "\033[" not in output

    def test_plain_stream_disables_colors(self):
        output = _formatter(StringIO()).format(_record(logging.ERROR))

        assert output == "ERROR | jam_sync.application.services.sync_engine | " + (
            "SYNC p1: idle -> loading"
        )

    def test_record_left_untouched(self):
        record = _record(logging.WARNING)

        _formatter(_TtyStream()).format(record)

        assert record.levelname == "WARNING"
        assert record.name == "jam_sync.application.services.sync_engine"


class TestLoggingConfigFile:
    def test_bundled_config_uses_formatter(self):
        path = Path(__file__).resolve().parents[1] / "logging_config.json"
        config = json.loads(path.read_text())

        assert config["formatters"]["console"]["()"] == "jam_sync.utils.logging.ColoredFormatter"
        for name in ("aiosqlite", "httpx", "engineio", "socketio"):
            assert config["loggers"][name]["level"] == "WARNING"
