"""Root logger setup with request-scoped correlation fields.

``setup_logger("json")`` emits one JSON object per line; the request id and
the authenticated user id are attached from context variables set by the
request middleware and by ``protect``.
"""

import contextvars
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

ctx_request_id = contextvars.ContextVar("request_id", default=None)
ctx_user_id = contextvars.ContextVar("user_id", default=None)

_CORRELATION_VARS = (ctx_request_id, ctx_user_id)

_NOISY_LOGGERS = ("httpx", "aiosqlite", "alembic", "uvicorn.access")


class CorrelationJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        for var in _CORRELATION_VARS:
            value = var.get()
            if value:
                log_record[var.name] = value


def setup_logger(log_format: str = "text", log_level: str = "INFO") -> logging.Logger:
    """Replace the root handlers with a single stdout handler."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if log_format.lower() == "json":
        handler.setFormatter(
            CorrelationJsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "asctime": "timestamp"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
