"""
netcontrol logging package.

This package provides Rich-based logging for netcontrol: a shared console,
a component-aware Logger, formatters and a handler for ``dictConfig``, and a
log capture helper for tests.
"""

import os
import logging
import logging.config
from typing import Dict, Any, Optional, List

from netcontrol.utils.logging.console import console
from netcontrol.utils.logging.logger import Logger
from netcontrol.utils.logging.emojis import get_emoji
from netcontrol.utils.logging.formatter import (
    NetControlLogRecord,
    SimpleLogFormatter,
    DetailedLogFormatter,
    RichLoggingHandler,
)

# Global logger instance for importing
logger = Logger("netcontrol")


def build_logging_config(level: str = "INFO", log_file: Optional[str] = None) -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping used by the CLI and worker.

    Args:
        level: Log level name
        log_file: Optional path of a rotating log file

    Returns:
        Logging configuration dictionary
    """
    handlers = ["rich_console"]
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": {
                "format": "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "rich_console": {
                "()": "netcontrol.utils.logging.formatter.create_rich_console_handler",
                "detailed": level.upper() == "DEBUG",
            },
        },
        "loggers": {
            "netcontrol": {
                "handlers": handlers,
                "level": level.upper(),
                "propagate": False,
            },
        },
    }

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        config["handlers"]["rotating_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": log_file,
            "maxBytes": 2 * 1024 * 1024,  # 2 MB
            "backupCount": 5,
            "encoding": "utf-8",
        }
        handlers.append("rotating_file")

    return config


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the ``netcontrol`` logger namespace.

    Args:
        level: Log level name
        log_file: Optional path of a rotating log file
    """
    logging.config.dictConfig(build_logging_config(level, log_file))
    logger.set_level(level)


def capture_logs(level: Optional[str] = None) -> "LogCapture":
    """Create a context manager to capture logs.

    Args:
        level: Minimum log level to capture

    Returns:
        Log capture context manager
    """
    return LogCapture(level)


class LogCapture:
    """Context manager for capturing netcontrol log records."""

    def __init__(self, level: Optional[str] = None):
        self.level = level
        self.level_num = getattr(logging, self.level.upper(), 0) if self.level else 0
        self.logs: List[Dict[str, Any]] = []
        self.handler = self._create_handler()
        self._target = logging.getLogger("netcontrol")

    def _create_handler(self) -> logging.Handler:
        class CaptureHandler(logging.Handler):
            def __init__(self, capture):
                super().__init__()
                self.capture = capture

            def emit(self, record):
                if record.levelno < self.capture.level_num:
                    return

                self.capture.logs.append({
                    "level": record.levelname,
                    "message": record.getMessage(),
                    "name": record.name,
                    "component": getattr(record, "component", None),
                    "operation": getattr(record, "operation", None),
                    "context": getattr(record, "context", {}),
                })

        return CaptureHandler(self)

    def __enter__(self) -> "LogCapture":
        self._previous_level = self._target.level
        self._target.addHandler(self.handler)
        if self._target.level > logging.DEBUG:
            self._target.setLevel(logging.DEBUG)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._target.removeHandler(self.handler)
        self._target.setLevel(self._previous_level)

    def get_messages(self, level: Optional[str] = None) -> List[str]:
        """Get captured log messages, optionally filtered by minimum level."""
        if not level:
            return [log["message"] for log in self.logs]
        level_num = getattr(logging, level.upper(), 0)
        return [log["message"] for log in self.logs if getattr(logging, log["level"], 0) >= level_num]

    def contains(self, text: str, level: Optional[str] = None) -> bool:
        """Check if captured logs contain a specific text."""
        return any(text in message for message in self.get_messages(level))


__all__ = [
    "console",
    "logger",
    "Logger",
    "get_emoji",
    "build_logging_config",
    "configure_logging",
    "capture_logs",
    "LogCapture",
    "NetControlLogRecord",
    "SimpleLogFormatter",
    "DetailedLogFormatter",
    "RichLoggingHandler",
]
