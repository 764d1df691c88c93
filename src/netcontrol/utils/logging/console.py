"""
Rich console configuration for the netcontrol logging system.

This module provides a configured Rich console instance for terminal output.
"""
from rich.console import Console
from rich.traceback import install as install_rich_traceback

from .themes import RICH_THEME

# Configure global console with our theme
console = Console(
    theme=RICH_THEME,
    highlight=True,
    markup=True,
    emoji=True,
    record=False,
    width=None,  # Auto-width
    color_system="auto",
)

# Install rich traceback handler for readable error tracebacks
install_rich_traceback(console=console, show_locals=False)
