"""
Storage Layer.

This package handles all data persistence: the INI configuration file and the
sink that writes finished videos to disk.
"""

from .config_manager import ConfigManager
from .sink import FileSink

__all__ = ["ConfigManager", "FileSink"]
