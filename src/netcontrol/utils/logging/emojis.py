"""
Emojis shown in front of netcontrol log lines.

Records pick the emoji of their operation when one is defined, otherwise the
emoji of their level.
"""
from typing import Dict

UNKNOWN = "❓"

LEVEL_EMOJIS: Dict[str, str] = {
    "debug": "🔍",
    "info": "ℹ️",
    "success": "✅",
    "warning": "⚠️",
    "error": "❌",
    "critical": "🚨",
}

OPERATION_EMOJIS: Dict[str, str] = {
    # Run lifecycle
    "submit": "📨",
    "claim": "📌",
    "recover": "🔁",
    "requeue": "🔁",
    "completed": "🏁",
    "stopping": "🛑",
    "starting": "🚀",
    "idle": "⏳",
    # Evolution
    "compute": "🧮",
    "initial_population": "🌱",
    "generation": "👪",
    "improvement": "📈",
    "checkpoint": "💾",
    "save_run": "💾",
    # Process
    "startup": "🔆",
    "shutdown": "🔅",
    "load_config": "⚙️",
    "save_config": "⚙️",
}


def get_emoji(category: str, name: str) -> str:
    """Look up the emoji of a level or an operation ('❓' if there is none)."""
    table = LEVEL_EMOJIS if category.lower() == "level" else OPERATION_EMOJIS
    return table.get(name.lower(), UNKNOWN)
