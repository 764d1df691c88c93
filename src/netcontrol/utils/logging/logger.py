"""
Component-aware logger for netcontrol.

``Logger`` wraps a standard library logger. Every call carries the component
(network, evolution, scheduler, storage, config, cli), the operation and a
context dictionary as record extras, which ``RichLoggingHandler`` renders.
"""
import sys
import time
import logging
from typing import Dict, Optional, Any, Tuple
from datetime import datetime
from contextlib import contextmanager

from .emojis import get_emoji

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _exc_info(exception: Optional[BaseException]) -> Optional[Tuple]:
    if exception is None:
        return None
    return (type(exception), exception, exception.__traceback__)


class Logger:
    """Logger that tags records with a component, an operation and a context."""

    def __init__(self, name: str = "netcontrol", level: str = "info", component: Optional[str] = None):
        self.name = name
        self.component = component
        self.python_logger = logging.getLogger(name)
        self.set_level(level)

    def set_level(self, level: str) -> None:
        """Set the level by name; unknown names fall back to info."""
        self.level = level.lower()
        self.python_logger.setLevel(LEVELS.get(self.level, logging.INFO))

    def get_level(self) -> str:
        return self.level

    def _log(
        self,
        level: str,
        message: str,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Tuple] = None,
    ) -> None:
        extra = {
            "component": component or self.component,
            "operation": operation,
            "emoji": get_emoji("level", "success") if level == "success" else None,
            "context": context or {},
        }
        self.python_logger.log(LEVELS[level], message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, component: Optional[str] = None, operation: Optional[str] = None,
              context: Optional[Dict[str, Any]] = None) -> None:
        self._log("debug", message, component, operation, context)

    def info(self, message: str, component: Optional[str] = None, operation: Optional[str] = None,
             context: Optional[Dict[str, Any]] = None) -> None:
        self._log("info", message, component, operation, context)

    def success(self, message: str, component: Optional[str] = None, operation: Optional[str] = None,
                context: Optional[Dict[str, Any]] = None) -> None:
        """Log at info level with the success emoji."""
        self._log("success", message, component, operation, context)

    def warning(self, message: str, component: Optional[str] = None, operation: Optional[str] = None,
                context: Optional[Dict[str, Any]] = None) -> None:
        self._log("warning", message, component, operation, context)

    def error(
        self,
        message: str,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        error_code: Optional[str] = None,
    ) -> None:
        """Log an error.

        Args:
            message: Log message
            component: Component name
            operation: Operation being performed
            context: Additional contextual data
            exception: Exception whose traceback is attached to the record
            error_code: Error code added to the context
        """
        error_context = dict(context or {})
        if error_code:
            error_context["error_code"] = error_code
        self._log("error", message, component, operation, error_context, _exc_info(exception))

    @contextmanager
    def time_operation(self, operation: str, component: Optional[str] = None, level: str = "info"):
        """Log how long the enclosed block took, at error level if it raised."""
        started = time.time()
        outcome, end_level = "Completed", level
        try:
            yield
        except Exception:
            outcome, end_level = "Failed", "error"
            raise
        finally:
            duration = time.time() - started
            self._log(
                end_level,
                f"{outcome} {operation} in {duration:.2f}s",
                component,
                operation,
                {"duration": duration},
            )

    def startup(self, version: str, component: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> None:
        startup_context = {
            "version": version,
            "python_version": sys.version.split()[0],
            "started_at": datetime.now().isoformat(),
            **(context or {}),
        }
        self._log("info", f"Starting netcontrol {version}", component, "startup", startup_context)

    def shutdown(self, component: Optional[str] = None, duration: Optional[float] = None) -> None:
        suffix = f" after {duration:.2f}s" if duration else ""
        self._log("info", f"Shutting down netcontrol{suffix}", component, "shutdown")
