"""
Rich styles for netcontrol log output.

Levels and components each get a style so scheduler, evolution and storage
lines can be told apart at a glance.
"""
from typing import Dict

from rich.style import Style
from rich.theme import Theme

LEVEL_STYLES: Dict[str, Style] = {
    "debug": Style(color="bright_black"),
    "info": Style(color="bright_blue"),
    "success": Style(color="green", bold=True),
    "warning": Style(color="yellow", bold=True),
    "error": Style(color="red", bold=True),
    "critical": Style(color="bright_red", bold=True, reverse=True),
}

COMPONENT_STYLES: Dict[str, Style] = {
    "network": Style(color="blue", bold=True),
    "evolution": Style(color="magenta", bold=True),
    "scheduler": Style(color="cyan", bold=True),
    "storage": Style(color="bright_magenta", bold=True),
    "config": Style(color="bright_yellow", bold=True),
    "cli": Style(color="bright_cyan", bold=True),
}

RICH_THEME = Theme({
    **LEVEL_STYLES,
    "operation": Style(color="magenta", bold=True),
    "timestamp": Style(color="bright_black", dim=True),
})


def get_level_style(level: str) -> Style:
    return LEVEL_STYLES.get(level.lower(), LEVEL_STYLES["info"])


def get_component_style(component: str) -> Style:
    """Style of a component name, falling back to the info style."""
    return COMPONENT_STYLES.get(component.lower(), LEVEL_STYLES["info"])
