from __future__ import annotations

import logging
import os
import threading
from typing import Optional, Union

LOG_FORMAT = "Request id : %(request_id)-6s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"
DEFAULT_LEVEL = "DEBUG"

_REQUEST_CONTEXT = threading.local()
_CONFIGURED = False


class RequestIdFilter(logging.Filter):
    """Stamps every record with the request id of the current thread."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def set_request_id(request_id: Optional[str]) -> None:
    _REQUEST_CONTEXT.request_id = request_id or ""


def get_request_id() -> str:
    return getattr(_REQUEST_CONTEXT, "request_id", "")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def setup_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """Configure the root logger once per process and return it.

    The level falls back to ``MEDHEAT_LOG_LEVEL`` and then to DEBUG. Later
    calls only adjust the level.
    """
    global _CONFIGURED
    if level is None:
        level = os.getenv("MEDHEAT_LOG_LEVEL", DEFAULT_LEVEL)
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    if _CONFIGURED:
        return root

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)
    _CONFIGURED = True
    return root
