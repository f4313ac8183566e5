"""
The main orchestrator for handling sources and running one download pipeline
per video.
"""

import asyncio
import logging
from pathlib import Path

import aiohttp
from rich.markup import escape

from hlsgrab.api.fetcher import FragmentFetcher, get_connection_pool
from hlsgrab.api.manifest_source import ManifestSource
from hlsgrab.api.retry import RetryManager
from hlsgrab.cli.progress_manager import ProgressManager
from hlsgrab.media.integrity import FileIntegrityChecker
from hlsgrab.models.config import DownloadConfig
from hlsgrab.models.stats import DownloadStats
from hlsgrab.storage.sink import FileSink
from hlsgrab.utils.formatting import (
    format_duration,
    format_fragment_count,
    format_playtime,
)

from .pipeline import DownloadPipeline, PipelineResult

log = logging.getLogger(__name__)


class IntegrityCheckingSink:
    """Runs the MP4 structure check on a buffer before passing it to a FileSink."""

    def __init__(self, sink: FileSink, stats: DownloadStats):
        self.sink = sink
        self.stats = stats

    async def save(self, data: bytes, suggested_name: str) -> Path:
        if not FileIntegrityChecker.check_mp4(data, suggested_name):
            self.stats.integrity_warnings += 1
        return await self.sink.save(data, suggested_name)


class DownloadManager:
    """Orchestrates the entire download session."""

    def __init__(
        self,
        config: DownloadConfig,
        progress_manager: ProgressManager,
        session: aiohttp.ClientSession | None = None,
        sink: FileSink | None = None,
    ):
        self.config = config
        self.progress_manager = progress_manager
        self.session = session
        self.stats = DownloadStats()
        self.sink = sink or FileSink(Path(config.output_dir), config.overwrite)
        self.semaphore = asyncio.Semaphore(config.max_workers)

    def _build_fetcher(self, session: aiohttp.ClientSession) -> FragmentFetcher:
        """Every video gets its own retry table."""
        retry_manager = RetryManager(
            max_attempts=self.config.max_attempts, base_delay=self.config.base_delay
        )
        return FragmentFetcher(
            session,
            retry_manager,
            fragment_timeout=self.config.fragment_timeout,
            manifest_timeout=self.config.manifest_timeout,
            headers=self.config.extra_headers,
        )

    def expand_sources(self) -> list[str]:
        """Reads list files, drops comments and duplicates, keeps order."""
        expanded = []
        for source in self.config.source_urls:
            path = Path(source)
            if path.is_file() and path.suffix.lower() not in (".m3u8", ".m3u"):
                log.info(f"Reading sources from file: [dim]{escape(source)}[/dim]")
                try:
                    with open(path, "r", encoding="utf-8") as f:
                        expanded.extend(
                            line.strip()
                            for line in f
                            if line.strip() and not line.startswith("#")
                        )
                except (IOError, UnicodeDecodeError) as e:
                    log.error(f"[red]Could not read file {escape(source)}: {e}[/red]")
            else:
                expanded.append(source)

        unique = list(dict.fromkeys(expanded))
        if len(unique) < len(expanded):
            log.info(f"Removed {len(expanded) - len(unique)} duplicate sources.")
        return unique

    async def execute_downloads(self) -> DownloadStats:
        """Processes every configured source, at most max_workers at a time."""
        sources = self.expand_sources()
        if not sources:
            log.warning("[yellow]No sources to process. Exiting.[/yellow]")
            return self.stats

        if self.session is None:
            self.session = await get_connection_pool(self.config.max_workers)

        self.progress_manager.initialize_session(total_videos=len(sources))
        await asyncio.gather(*(self._bounded(source) for source in sources))
        return self.stats

    async def _bounded(self, source: str) -> None:
        async with self.semaphore:
            await self.process_source(source)

    async def process_source(self, source: str) -> PipelineResult | None:
        """
        Resolves one source to a manifest and runs a fresh pipeline for it.
        Failures are logged and counted; they never abort other downloads.
        """
        fetcher = self._build_fetcher(self.session)
        manifest_source = ManifestSource(fetcher, self.config.manifest_url_template)
        task_id = None

        try:
            document = await manifest_source.load(source)
            file_name = self.config.output_template.format(id=document.video_id)

            if self.sink.exists(file_name) and not self.config.overwrite:
                await self.stats.record_skip()
                self.progress_manager.increment_skipped()
                log.info(
                    f"  [yellow]○ Skipping:[/] [dim]{escape(file_name)}[/dim] "
                    "(already exists)"
                )
                return None

            task_id = self.progress_manager.add_video_task(document.video_id)
            pipeline = DownloadPipeline(
                fetcher,
                IntegrityCheckingSink(self.sink, self.stats),
                on_progress=lambda pct: self.progress_manager.update_task_progress(
                    task_id, pct
                ),
            )
            result = await pipeline.run(
                document.text, file_name, base_url=document.base_url
            )
        except Exception as e:
            await self.stats.record_failure(source, str(e))
            self.progress_manager.remove_task(task_id, success=False)
            log.error(
                f"  [red]✗ Failed:[/] {escape(source)} ({escape(str(e))})",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            return None

        await self.stats.record_success(
            result.size_bytes, result.fragment_count, result.media_duration_s
        )
        self.progress_manager.remove_task(task_id, success=True)
        log.info(
            f"  [green]✓ Saved:[/] [dim]{escape(str(result.path))}[/dim] "
            f"({format_fragment_count(result.fragment_count)}, "
            f"{format_playtime(result.media_duration_s)} in "
            f"{format_duration(result.elapsed_s)})"
        )
        return result
