"""
netcontrol utilities package.

This package provides error types, logging and asynchronous helpers used
throughout netcontrol.
"""

from netcontrol.utils.logging import logger

__all__ = ["logger"]
