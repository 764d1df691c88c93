"""
Version information for netcontrol.
"""
import sys

# Version of the netcontrol package
__version__ = "0.1.0"

# Version of the stored run document layout
STORAGE_FORMAT_VERSION = "1"

# Minimum supported Python version
MINIMUM_PYTHON_VERSION = "3.9"


def get_version_info():
    """Get comprehensive version information.

    Returns:
        dict: Dictionary with version details
    """
    return {
        "version": __version__,
        "storage_format_version": STORAGE_FORMAT_VERSION,
        "minimum_python_version": MINIMUM_PYTHON_VERSION,
        "python_version": sys.version.split()[0],
    }
