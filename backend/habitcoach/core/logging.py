"""Logging setup; every record carries the request id and user id."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from habitcoach.core.context import get_request_id, get_user_id

# Chatty at INFO while plans are generated.
QUIET_LOGGERS = ("httpx", "openai", "opik")

_configured = False


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Install the console handler once; later calls are ignored."""
    global _configured
    if _configured:
        return

    level = log_level.upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "context": {
                    "format": "%(asctime)s %(levelname)s [%(request_id)s user=%(user_id)s] %(name)s: %(message)s",
                }
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "context",
                    "filters": ["request_context"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"handlers": ["console"], "level": level},
        }
    )
    _configured = True
    logging.getLogger(__name__).debug("Logging configured at %s", level)
