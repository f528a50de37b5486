"""Logging setup for the ``bitteam`` logger hierarchy."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from .settings import LogSettings, Settings

LOGGER_NAME = "bitteam"
LOG_FILE = "bitteam.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that chatter at DEBUG on every request.
QUIET_LOGGERS = ("aiohttp.client", "aiohttp.internal", "asyncio")


def resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _build_handlers(log: LogSettings, level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log.dir:
        log_dir = Path(log.dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_dir / LOG_FILE,
                maxBytes=log.max_bytes,
                backupCount=log.backup_count,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(settings: Settings) -> logging.Logger:
    """Route connector logs to the console and, if configured, a rotating file.

    Only the ``bitteam`` logger is configured, so an application embedding the
    connector keeps control of the root logger. Calling this again replaces
    the handlers installed by the previous call.

    Raises:
        ValueError: ``settings.log.level`` is not a logging level name
    """
    level = resolve_level(settings.log.level)

    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(settings.log, level):
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    package_logger.debug("settings=%s", settings.redacted())
    return package_logger
