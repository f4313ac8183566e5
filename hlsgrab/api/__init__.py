"""
Network Layer.

This package handles all HTTP communication: manifest resolution, byte-range
fragment fetching, and the per-key retry policy that wraps both.
"""

from .fetcher import FragmentFetcher
from .manifest_source import ManifestDocument, ManifestSource
from .retry import RetryManager

__all__ = ["FragmentFetcher", "ManifestDocument", "ManifestSource", "RetryManager"]
