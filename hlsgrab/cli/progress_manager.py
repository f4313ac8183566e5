"""
Manages a Rich Live display showing overall progress and one bar per active
video download.
"""

import asyncio
import logging
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

log = logging.getLogger("hlsgrab")


class ProgressManager:
    """
    Tracks per-video fragment progress (0-100) and session counters.

    With `enabled=False` every method is a no-op apart from the counters, which
    keeps the manager usable from tests and non-interactive runs.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=console,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID | None = None
        self._active_tasks: dict[TaskID, str] = {}
        self._stats = {
            "total_videos": 0,
            "completed": 0,
            "failed": 0,
            "skipped": 0,
            "peak_concurrent": 0,
            "start_time": None,
        }

    def initialize_session(self, total_videos: int):
        self._stats["total_videos"] = total_videos
        self._stats["start_time"] = datetime.now()
        if self.enabled:
            self._overall_task_id = self.overall_progress.add_task(
                "Overall Progress", total=total_videos, start=True
            )

    def add_video_task(self, video_id: str) -> TaskID | None:
        if not self.enabled:
            return None
        description = video_id if len(video_id) <= 40 else video_id[:37] + "..."
        task_id = self.progress.add_task(description, total=100, start=True)
        self._active_tasks[task_id] = video_id
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], len(self._active_tasks)
        )
        return task_id

    def update_task_progress(self, task_id: TaskID | None, percentage: float):
        """Sets a task to the fraction reported by its pipeline."""
        if task_id is not None and self.enabled:
            self.progress.update(task_id, completed=percentage)

    def _advance_overall(self):
        if self._overall_task_id is not None and self.enabled:
            self.overall_progress.update(
                self._overall_task_id,
                completed=(
                    self._stats["completed"]
                    + self._stats["failed"]
                    + self._stats["skipped"]
                ),
            )

    def remove_task(self, task_id: TaskID | None, success: bool = True):
        if success:
            self._stats["completed"] += 1
        else:
            self._stats["failed"] += 1
        if task_id is not None and self.enabled:
            try:
                self.progress.remove_task(task_id)
            except KeyError:
                pass
            self._active_tasks.pop(task_id, None)
        self._advance_overall()

    def increment_skipped(self, count: int = 1):
        self._stats["skipped"] += count
        self._advance_overall()

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        if not self.enabled:
            return self
        self._live = Live(
            Panel(
                Group(self.overall_progress, self.progress),
                title="[bold]📥 Downloads[/bold]",
                border_style="green",
            ),
            console=self.console,
            refresh_per_second=10,
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.1)
            self._live.stop()
            self._live = None
