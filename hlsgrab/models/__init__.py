"""
Data Models Layer.

This package contains the data structures used throughout the application:
the Pydantic configuration model, session statistics, and the parsed manifest.
"""

from .config import DownloadConfig
from .manifest import ByteRange, FragmentRef, InitFragmentRef, ParsedManifest
from .stats import DownloadStats

__all__ = [
    "ByteRange",
    "DownloadConfig",
    "DownloadStats",
    "FragmentRef",
    "InitFragmentRef",
    "ParsedManifest",
]
