"""
Rendering of netcontrol log records with Rich.

A record line reads ``[time] emoji [LEVEL] [component] operation: message``.
The detailed formatter adds the context as a small table and the traceback,
and frames errors in a panel.
"""
import time
import logging
from typing import Dict, Any, Optional, Tuple
from datetime import datetime

from rich.console import Console, ConsoleRenderable, Group
from rich.text import Text
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.traceback import Traceback
from rich.style import Style

from .emojis import LEVEL_EMOJIS, UNKNOWN, get_emoji
from .themes import get_level_style, get_component_style

# Longer containers are summarised in the context table.
MAX_CONTEXT_ITEMS = 8


class NetControlLogRecord:
    """A log record with the netcontrol extras pulled out of ``logging.LogRecord``."""

    def __init__(
        self,
        level: str,
        message: str,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        emoji: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        timestamp: Optional[float] = None,
        exception_info: Optional[Tuple] = None,
    ):
        self.level = level.lower()
        self.message = message
        self.component = component.lower() if component else None
        self.operation = operation.lower() if operation else None
        self.custom_emoji = emoji
        self.context = context or {}
        self.timestamp = timestamp or time.time()
        self.exception_info = exception_info

    @classmethod
    def from_logging(cls, record: logging.LogRecord) -> "NetControlLogRecord":
        return cls(
            level=record.levelname,
            message=record.getMessage(),
            component=getattr(record, "component", None),
            operation=getattr(record, "operation", None),
            emoji=getattr(record, "emoji", None),
            context=getattr(record, "context", None),
            timestamp=record.created,
            exception_info=record.exc_info or None,
        )

    @property
    def emoji(self) -> str:
        """Custom emoji, else the operation's, else the level's."""
        if self.custom_emoji:
            return self.custom_emoji
        if self.operation:
            operation_emoji = get_emoji("operation", self.operation)
            if operation_emoji != UNKNOWN:
                return operation_emoji
        return LEVEL_EMOJIS.get(self.level, UNKNOWN)

    @property
    def style(self) -> Style:
        return get_level_style(self.level)

    @property
    def component_style(self) -> Style:
        return get_component_style(self.component) if self.component else self.style

    @property
    def format_time(self) -> str:
        # HH:MM:SS.mmm
        return datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S.%f")[:-3]

    def has_exception(self) -> bool:
        return self.exception_info is not None


class NetControlLogFormatter:
    """Turns a record into a Rich renderable."""

    def __init__(self, show_time: bool = True, show_level: bool = True, show_component: bool = True):
        self.show_time = show_time
        self.show_level = show_level
        self.show_component = show_component

    def line(self, record: NetControlLogRecord) -> Text:
        text = Text()
        if self.show_time:
            text.append(f"[{record.format_time}] ", style="timestamp")
        text.append(f"{record.emoji} ", style=record.style)
        if self.show_level:
            text.append(f"[{record.level.upper()}] ", style=record.style)
        if self.show_component and record.component:
            text.append(f"[{record.component}] ", style=record.component_style)
        if record.operation:
            text.append(f"{record.operation}: ", style="operation")
        text.append(record.message)
        return text

    def format_record(self, record: NetControlLogRecord) -> ConsoleRenderable:
        raise NotImplementedError


class SimpleLogFormatter(NetControlLogFormatter):
    """One line per record."""

    def format_record(self, record: NetControlLogRecord) -> Text:
        return self.line(record)


class DetailedLogFormatter(NetControlLogFormatter):
    """Record line followed by its context and traceback."""

    def _context_table(self, context: Dict[str, Any]) -> Table:
        table = Table(box=None, show_header=False, padding=(0, 1))
        table.add_column(style="bright_black")
        table.add_column()
        for key, value in context.items():
            if isinstance(value, (dict, list, tuple)) and len(value) > MAX_CONTEXT_ITEMS:
                value = f"<{type(value).__name__} with {len(value)} items>"
            table.add_row(str(key), str(value))
        return table

    def format_record(self, record: NetControlLogRecord) -> ConsoleRenderable:
        line = self.line(record)
        if not record.context and not record.has_exception():
            return line

        parts = [line]
        if record.context:
            parts.append(self._context_table(record.context))
        if record.has_exception():
            parts.append(Traceback.from_exception(*record.exception_info))

        if record.level in ("error", "critical"):
            return Panel(
                Group(*parts),
                title=f"{record.level.upper()} in {record.component or 'netcontrol'}",
                border_style=record.style,
            )
        return Group(*parts)


class RichLoggingHandler(RichHandler):
    """``RichHandler`` that renders records through a netcontrol formatter."""

    def __init__(
        self,
        level: int = logging.NOTSET,
        console: Optional[Console] = None,
        formatter: Optional[NetControlLogFormatter] = None,
        **kwargs
    ):
        super().__init__(level=level, console=console, **kwargs)
        self.netcontrol_formatter = formatter or SimpleLogFormatter()

    def render(
        self,
        record: logging.LogRecord,
        traceback: Optional[Traceback],
        message_renderable: ConsoleRenderable,
    ) -> ConsoleRenderable:
        return self.netcontrol_formatter.format_record(NetControlLogRecord.from_logging(record))


def create_rich_console_handler(**kwargs) -> RichLoggingHandler:
    """Handler factory referenced from the ``dictConfig`` mapping."""
    from .console import console

    return RichLoggingHandler(
        level=kwargs.get("level", logging.INFO),
        console=console,
        show_path=kwargs.get("show_path", False),
        markup=kwargs.get("markup", True),
        rich_tracebacks=kwargs.get("rich_tracebacks", True),
        formatter=DetailedLogFormatter() if kwargs.get("detailed") else SimpleLogFormatter(),
    )
