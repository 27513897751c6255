"""Logging configuration for feldspar.

Two handlers are installed on the root logger:
- a colorlog console handler on stderr, so records never interleave with
  REPL results printed on stdout
- a rotating file handler under the data directory, plain text or JSON
  (python-json-logger)

Levels, paths and formats come from ``FeldsparSettings`` (``FELDSPAR_LOG_*``
environment variables); the CLI's ``--log-level`` overrides the console level.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import colorlog
from pythonjsonlogger import json

if TYPE_CHECKING:
    from feldspar.config import FeldsparSettings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _level(name: str, default: int) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter("%(log_color)s" + LOG_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
    )
    return handler


def _file_handler(settings: "FeldsparSettings") -> RotatingFileHandler:
    log_dir = settings.resolved_log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_dir / settings.log_file_name,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(_level(settings.log_file_level, logging.DEBUG))
    if settings.log_json_format:
        handler.setFormatter(json.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s", datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    settings: "FeldsparSettings | None" = None,
    log_level: str | None = None,
    force: bool = False,
) -> None:
    """Configure logging for feldspar.

    Args:
        settings: Settings to read levels, paths and formats from (defaults to the global settings)
        log_level: Console level overriding ``settings.log_level``
        force: Replace existing root handlers instead of leaving logging as it is
    """
    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        return

    if settings is None:
        from feldspar.config import get_settings

        settings = get_settings()

    console_level = log_level or settings.log_level

    if force:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    # Handlers do the filtering
    root_logger.setLevel(logging.DEBUG)

    file_handler = _file_handler(settings)
    root_logger.addHandler(_console_handler(_level(console_level, logging.WARNING)))
    root_logger.addHandler(file_handler)

    logging.getLogger(__name__).info(
        f"Logging configured: console={console_level.upper()}, file={settings.log_file_level.upper()}, "
        f"file_path={file_handler.baseFilename}, json_format={settings.log_json_format}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Handlers are installed by the command-line entry point through
    setup_logging; this never configures logging itself.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(name)
