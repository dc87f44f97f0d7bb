"""
Tests for main.py - Main Entry Point

Covers logging configuration, container creation, the serve loop and
exit codes.
"""

import json
import logging
from unittest.mock import AsyncMock, MagicMock, mock_open, patch

import pytest

from jam_sync.main import cli, main, serve, setup_logging


def _settings(log_level: str = "INFO", environment: str = "test") -> MagicMock:
    settings = MagicMock()
    settings.log_level = log_level
    settings.environment = environment
    return settings


class TestLoggingSetup:
    """Tests for logging configuration."""

    def _make_valid_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "aiosqlite": {"level": "WARNING"},
                "socketio": {"level": "WARNING"},
            },
            "root": {"level": "INFO", "handlers": []},
        }

    def test_dictconfig_called_when_json_exists(self):
        config = self._make_valid_config()
        with (
            patch("builtins.open", mock_open(read_data=json.dumps(config))),
            patch("logging.config.dictConfig") as mock_dc,
        ):
            setup_logging()

        mock_dc.assert_called_once_with(config)

    def test_fallback_when_json_missing(self):
        with (
            patch("builtins.open", side_effect=FileNotFoundError),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging("WARNING")

        mock_bc.assert_called_once()
        assert mock_bc.call_args.kwargs["level"] == logging.WARNING

    def test_fallback_when_json_malformed(self):
        with (
            patch("builtins.open", mock_open(read_data="{invalid json")),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

        mock_bc.assert_called_once()

    def test_root_level_follows_settings(self):
        with (
            patch("builtins.open", mock_open(read_data=json.dumps(self._make_valid_config()))),
            patch("logging.config.dictConfig"),
            patch("logging.getLogger") as mock_get_logger,
        ):
            setup_logging("DEBUG")

        mock_get_logger.return_value.setLevel.assert_called_once_with(logging.DEBUG)


class TestServe:
    @pytest.mark.asyncio
    async def test_runs_server_between_initialize_and_shutdown(self):
        container = MagicMock()
        container.initialize = AsyncMock()
        container.shutdown = AsyncMock()
        container.settings.server.host = "0.0.0.0"
        container.settings.server.port = 5055
        server = MagicMock()
        server.serve = AsyncMock()

        with (
            patch("jam_sync.infrastructure.api.http.create_app", return_value="asgi-app"),
            patch("uvicorn.Config") as mock_config,
            patch("uvicorn.Server", return_value=server),
        ):
            await serve(container)

        container.initialize.assert_awaited_once()
        container.cleanup_job.start.assert_called_once()
        server.serve.assert_awaited_once()
        container.shutdown.assert_awaited_once()
        assert mock_config.call_args.args == ("asgi-app",)
        assert mock_config.call_args.kwargs["host"] == "0.0.0.0"
        assert mock_config.call_args.kwargs["port"] == 5055

    @pytest.mark.asyncio
    async def test_shutdown_runs_when_server_fails(self):
        container = MagicMock()
        container.initialize = AsyncMock()
        container.shutdown = AsyncMock()
        server = MagicMock()
        server.serve = AsyncMock(side_effect=OSError("address in use"))

        with (
            patch("jam_sync.infrastructure.api.http.create_app"),
            patch("uvicorn.Config"),
            patch("uvicorn.Server", return_value=server),
            pytest.raises(OSError),
        ):
            await serve(container)

        container.shutdown.assert_awaited_once()


class TestMainFunction:
    def _run_main(self, run_effect=None, settings=None):
        settings = settings or _settings()
        with (
            patch("jam_sync.config.settings.get_settings", return_value=settings),
            patch("jam_sync.main.setup_logging") as mock_setup,
            patch("jam_sync.config.container.create_container") as mock_create,
            patch("jam_sync.main.serve", MagicMock(return_value="serve-coro")) as mock_serve,
            patch("jam_sync.main.asyncio.run", side_effect=run_effect) as mock_run,
        ):
            exit_code = main()

        mock_serve.assert_called_once_with(mock_create.return_value)
        mock_run.assert_called_once_with("serve-coro")
        return exit_code, mock_setup, mock_create

    def test_successful_run(self):
        exit_code, mock_setup, _ = self._run_main(settings=_settings("DEBUG"))

        assert exit_code == 0
        mock_setup.assert_called_once_with("DEBUG")

    def test_keyboard_interrupt_is_graceful(self):
        exit_code, _, _ = self._run_main(KeyboardInterrupt())

        assert exit_code == 0

    def test_unhandled_exception_returns_error(self):
        exit_code, _, _ = self._run_main(RuntimeError("relay crashed"))

        assert exit_code == 1

    def test_container_created_with_settings(self):
        settings = _settings()

        _, _, mock_create = self._run_main(settings=settings)

        mock_create.assert_called_once_with(settings)

    def test_cli_exits_with_main_code(self):
        with patch("jam_sync.main.main", return_value=3), pytest.raises(SystemExit) as exc:
            cli()

        assert exc.value.code == 3
