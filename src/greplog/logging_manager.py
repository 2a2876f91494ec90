"""Logging setup for greplog.

Tracing goes to standard output when verbose mode is on, and to an optional
rotating JSON log file. Neither affects the exit code or the rendered output.
"""

import json
import logging
import logging.handlers
import sys
from pathlib import Path

from .config import GrepLogConfig
from .errors import ScanIOError

LOGGER_NAME = "greplog"

# LogRecord attributes that are not user supplied extras
_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "asctime",
        "taskName",
        "extras",
        "json_message",
    ]
)


class JsonExtraFilter(logging.Filter):
    """Adds extra record attributes as a JSON fragment in ``record.extras``."""

    def filter(self, record):
        extras = {}
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                try:
                    json.dumps(value)  # Ensure serializable
                    extras[key] = value
                except (TypeError, ValueError):
                    extras[key] = str(value)

        if extras:
            record.extras = ", " + ", ".join(f'"{k}": {json.dumps(v)}' for k, v in extras.items())
        else:
            record.extras = ""
        return True


class _JsonMessageFilter(logging.Filter):
    """Stores the JSON-quoted rendered message in ``record.json_message``."""

    def filter(self, record):
        record.json_message = json.dumps(record.getMessage())
        return True


class LoggingManager:
    """Configures the greplog logger from a GrepLogConfig."""

    def __init__(self, config: GrepLogConfig, stream=None):
        """Initialize logging manager.

        Args:
            config: Process configuration.
            stream: Stream for verbose tracing, standard output by default.
        """
        self.config = config
        self.stream = stream if stream is not None else sys.stdout
        self.logger = logging.getLogger(LOGGER_NAME)
        self._setup_logger()

    def _setup_logger(self):
        """Attach console, file or null handlers to the greplog logger."""
        logger = self.logger
        logger.propagate = False  # Don't propagate to root - we have our own handlers
        logger.setLevel(logging.DEBUG)

        # Remove existing handlers
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        if self.config.verbose:
            console_handler = logging.StreamHandler(self.stream)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            logger.addHandler(console_handler)

        if self.config.log_file:
            log_file = Path(self.config.log_file)
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file,
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                )
            except OSError as e:
                raise ScanIOError(f"Cannot open log file {log_file}: {e}") from e
            file_handler.setLevel(getattr(logging, self.config.log_level))
            file_handler.addFilter(JsonExtraFilter())
            file_handler.setFormatter(
                logging.Formatter(
                    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
                    '"message": %(json_message)s, "module": "%(module)s", '
                    '"function": "%(funcName)s", "line": %(lineno)d%(extras)s}',
                    datefmt="%Y-%m-%dT%H:%M:%S",
                )
            )
            file_handler.addFilter(_JsonMessageFilter())
            logger.addHandler(file_handler)

        if not logger.handlers:
            logger.addHandler(logging.NullHandler())

    def shutdown(self):
        """Flush and close all handlers."""
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
            self.logger.removeHandler(handler)
