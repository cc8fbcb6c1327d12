import logging
import sys

from pinvault.settings import settings

SERVICE_NAME = "pinvault"
TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# HTTP client loggers echo every reset request URL at INFO/DEBUG.
QUIET_LOGGERS = ("httpx", "httpcore")


def _formatter() -> logging.Formatter:
    if not settings.log_json:
        return logging.Formatter(TEXT_FORMAT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt=JSON_FORMAT,
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        static_fields={"service": SERVICE_NAME},
    )


def configure_logging() -> None:
    """Install a single stderr handler on the root logger.

    Security events log the context id only, never PIN material.  Call
    ``reconfigure()`` after Alembic, whose ``fileConfig`` replaces the root
    handlers.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


reconfigure = configure_logging
