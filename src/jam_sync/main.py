#!/usr/bin/env python3
"""Main entry point for the jam sync server."""

from __future__ import annotations

import asyncio
import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from jam_sync.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from jam_sync.config.container import Container

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def _apply_logging_config() -> bool:
    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            logging.config.dictConfig(json.load(f))
    except (OSError, ValueError):
        return False
    return True


def setup_logging(log_level: str = "INFO") -> None:
    """Apply ``logging_config.json``, or a plain stderr format when it is unusable.

    ``log_level`` always wins over the root level in the file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    if not _apply_logging_config():
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%H:%M:%S")
        logging.getLogger(__name__).warning(
            "Could not apply %s; using basic console logging", _LOGGING_CONFIG_PATH
        )

    logging.getLogger().setLevel(level)


async def serve(container: Container) -> None:
    """Run the HTTP API and socket relay until the server is stopped."""
    import uvicorn

    from jam_sync.infrastructure.api.http import create_app

    server_settings = container.settings.server
    await container.initialize()
    container.cleanup_job.start()
    try:
        config = uvicorn.Config(
            create_app(container),
            host=server_settings.host,
            port=server_settings.port,
            log_config=None,
        )
        logging.getLogger(__name__).info(
            LogTemplates.APP_LISTENING, server_settings.host, server_settings.port
        )
        await uvicorn.Server(config).serve()
    finally:
        await container.shutdown()


def main() -> int:
    from jam_sync.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)
    logger.info(LogTemplates.APP_STARTING.format(environment=settings.environment))

    from jam_sync.config.container import create_container

    container = create_container(settings)

    try:
        asyncio.run(serve(container))
        logger.info(LogTemplates.APP_STOPPED)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.APP_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
