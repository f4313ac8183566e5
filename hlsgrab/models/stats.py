"""
Dataclass for tracking download session statistics.
"""

import asyncio
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks statistics for a download session."""

    videos_downloaded: int = 0
    videos_skipped_exists: int = 0
    videos_failed: int = 0
    fragments_fetched: int = 0
    total_size_downloaded: int = 0
    total_media_duration: float = 0.0
    integrity_warnings: int = 0
    failures: dict[str, str] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def record_success(
        self, size_bytes: int, fragment_count: int, media_duration_s: float = 0.0
    ) -> None:
        async with self._lock:
            self.total_media_duration += media_duration_s
            self.videos_downloaded += 1
            self.total_size_downloaded += size_bytes
            self.fragments_fetched += fragment_count

    async def record_failure(self, source: str, message: str) -> None:
        async with self._lock:
            self.videos_failed += 1
            self.failures[source] = message

    async def record_skip(self) -> None:
        async with self._lock:
            self.videos_skipped_exists += 1

    @property
    def total_processed(self) -> int:
        return self.videos_downloaded + self.videos_skipped_exists + self.videos_failed
