"""
Persists finished MP4 buffers to disk.
"""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
from pathvalidate import sanitize_filename

from hlsgrab.exceptions import PersistenceError

log = logging.getLogger(__name__)


class FileSink:
    """Writes buffers into an output directory through a temporary file."""

    def __init__(self, output_dir: Path, overwrite: bool = False):
        self.output_dir = Path(output_dir)
        self.overwrite = overwrite

    def target_path(self, suggested_name: str) -> Path:
        name = sanitize_filename(suggested_name, platform="auto") or "video.mp4"
        return self.output_dir / name

    def exists(self, suggested_name: str) -> bool:
        return self.target_path(suggested_name).is_file()

    async def save(self, data: bytes, suggested_name: str) -> Path:
        """
        Writes `data` under a sanitized version of `suggested_name`.

        The buffer is written to `<name>.part` and renamed once complete, so an
        interrupted write never leaves a truncated file under the final name.

        Raises:
            PersistenceError: If the target exists and overwrite is off, or the
            write fails.
        """
        final_path = self.target_path(suggested_name)
        if final_path.exists() and not self.overwrite:
            raise PersistenceError(f"'{final_path}' already exists.")

        temp_path = final_path.with_name(final_path.name + ".part")
        try:
            await asyncio.to_thread(self.output_dir.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await asyncio.to_thread(os.replace, temp_path, final_path)
        except OSError as e:
            if temp_path.exists():
                try:
                    os.remove(temp_path)
                except OSError:
                    log.debug(f"Could not remove partial file '{temp_path}'.")
            raise PersistenceError(f"Failed to write '{final_path}': {e}") from e

        log.debug(f"Saved {len(data)} bytes to '{final_path}'.")
        return final_path
