"""
Structured JSON log formatting for the Casaya backend.
"""

import logging
import traceback
from datetime import datetime
from typing import Any

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "casaya-backend"

LOG_FORMAT = "%(timestamp)s %(level)s %(transaction_id)s %(message)s"


class StructuredFormatter(JsonFormatter):
    """JSON formatter that stamps service, source and request metadata."""

    def __init__(self, *args, service_version: str = "0.1.0", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_version = service_version

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now().astimezone().isoformat()
        log_record["transaction_id"] = getattr(record, "transaction_id", None)
        log_record["level"] = record.levelname
        log_record["logger_name"] = record.name
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno
        log_record["service"] = {
            "name": SERVICE_NAME,
            "version": self.service_version,
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_record["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        for field in ["msg", "args", "created", "msecs", "relativeCreated", "pathname"]:
            log_record.pop(field, None)


def build_formatter(use_json: bool, service_version: str) -> logging.Formatter:
    """Return the JSON formatter or a plain pipe-separated one for local runs."""
    if use_json:
        return StructuredFormatter(
            fmt=LOG_FORMAT,
            datefmt="%Y-%m-%dT%H:%M:%S",
            service_version=service_version,
        )
    return logging.Formatter(
        "%(asctime)s | %(levelname)s | %(transaction_id)s | "
        "%(name)s:%(lineno)d | %(message)s"
    )
