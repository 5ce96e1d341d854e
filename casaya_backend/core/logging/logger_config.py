"""
Central logging configuration for the Casaya backend.

Console output always; optionally a rotating file written from a background
queue listener so request handlers never block on disk I/O.
"""

import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler

from .middleware import TransactionIdFilter
from .structured_logger import build_formatter

APP_LOGGER = "casaya_backend"

QUIET_LOGGERS = {
    "sqlalchemy": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


class LoggingConfig:
    """Holds the handlers installed by :func:`setup_logging`."""

    def __init__(self):
        self._listener: QueueListener | None = None
        self._is_configured = False

    def setup(
        self,
        log_level: str = "INFO",
        use_json_format: bool = True,
        log_to_file: bool = False,
        log_file_path: str = "logs/app.log",
        max_bytes: int = 50 * 1024 * 1024,
        backup_count: int = 5,
        service_version: str = "0.1.0",
    ) -> logging.Logger:
        if self._is_configured:
            return get_logger()

        level = getattr(logging, log_level.upper(), logging.INFO)
        formatter = build_formatter(use_json_format, service_version)
        txn_filter = TransactionIdFilter()

        handlers: list[logging.Handler] = []
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        handlers.append(console)

        if log_to_file:
            directory = os.path.dirname(log_file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file_path, maxBytes=max_bytes, backupCount=backup_count
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        # The filter runs on the queue handler, in the request's context,
        # so the transaction id is captured before the record changes threads.
        log_queue: queue.Queue = queue.Queue()
        queue_handler = QueueHandler(log_queue)
        queue_handler.addFilter(txn_filter)
        self._listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
        self._listener.start()

        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(queue_handler)
        root.setLevel(level)

        for name, quiet_level in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(quiet_level)

        logging.captureWarnings(True)
        self._is_configured = True
        return get_logger()

    def shutdown(self) -> None:
        if self._listener:
            self._listener.stop()
            self._listener = None
        self._is_configured = False


_logging_config = LoggingConfig()


def setup_logging(settings=None) -> logging.Logger:
    """Configure logging from application settings (loaded lazily)."""
    if settings is None:
        from ...config import settings

    return _logging_config.setup(
        log_level=settings.log_level,
        use_json_format=settings.log_format.lower() == "json",
        log_to_file=settings.log_to_file,
        log_file_path=settings.log_file_path,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        service_version=settings.api_version,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger namespaced under the application logger."""
    if name:
        if name.startswith(APP_LOGGER):
            return logging.getLogger(name)
        return logging.getLogger(f"{APP_LOGGER}.{name}")
    return logging.getLogger(APP_LOGGER)


def shutdown_logging() -> None:
    _logging_config.shutdown()
