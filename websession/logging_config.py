"""
Logging configuration for the session service.

Health probes are dropped from the uvicorn access log, and session store ids
are shortened before any handler writes them out.
"""

import logging
import logging.config
import re
from typing import Any, Dict, Iterable

DEFAULT_HEALTH_PATHS = ("/health", "/healthz")

# Store ids are md5 hex digests
SESSION_ID_PATTERN = re.compile(r"\b([0-9a-f]{8})[0-9a-f]{24}\b")


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check requests from the access log."""

    def __init__(self, paths: Iterable[str] = DEFAULT_HEALTH_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True

        # uvicorn passes (client, method, path, http_version, status)
        if isinstance(record.args, tuple) and len(record.args) == 5:
            method, path = record.args[1], str(record.args[2])
        else:
            parts = record.getMessage().split('"')
            request = parts[1].split() if len(parts) > 1 else []
            if len(request) < 2:
                return True
            method, path = request[0], request[1]

        return not (method == "GET" and path.split("?", 1)[0] in self.paths)


class SessionIdFilter(logging.Filter):
    """Shorten session store ids to their first 8 characters."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = SESSION_ID_PATTERN.sub(r"\1...", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def get_logging_config(
    level: str = "INFO", health_paths: Iterable[str] = DEFAULT_HEALTH_PATHS
) -> Dict[str, Any]:
    """
    Build the dictConfig used by the app and by uvicorn.

    Args:
        level: Level of the websession package loggers
        health_paths: Request paths left out of the access log
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {
                "()": HealthCheckFilter,
                "paths": tuple(health_paths),
            },
            "session_id_filter": {
                "()": SessionIdFilter,
            },
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(asctime)s - access - %(message)s"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["session_id_filter"],
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "websession": {"handlers": ["default"], "level": level, "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["default"]},
    }
