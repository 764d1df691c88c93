"""
Storage package for netcontrol.

This package provides the SQLite database helper and the persistent run store
the scheduler checkpoints into.
"""

from netcontrol.storage.database import (
    Database,
    DatabaseRegistry,
    create_database,
    close_all_databases,
)
from netcontrol.storage.run_store import RunStore, get_run_store

__all__ = [
    "Database",
    "DatabaseRegistry",
    "create_database",
    "close_all_databases",
    "RunStore",
    "get_run_store",
]
