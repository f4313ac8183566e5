"""
Drives one download: parse the manifest, fetch every fragment in order, feed
the reassembler, and hand the finished buffer to the sink.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from hlsgrab.exceptions import PipelineStateError
from hlsgrab.media import manifest_parser
from hlsgrab.media.reassembler import ContainerReassembler
from hlsgrab.models.manifest import ByteRange, ParsedManifest

log = logging.getLogger(__name__)


class PipelineState(Enum):
    """States of a download pipeline."""

    IDLE = "idle"
    PARSING_MANIFEST = "parsing_manifest"
    FETCHING_INIT = "fetching_init"
    FETCHING_MEDIA = "fetching_media"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class Fetcher(Protocol):
    async def fetch(
        self, url: str, byte_range: ByteRange | None = None
    ) -> bytes: ...


class Sink(Protocol):
    async def save(self, data: bytes, suggested_name: str) -> Path: ...


ProgressCallback = Callable[[float], None]
StateCallback = Callable[["PipelineState"], None]


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful run."""

    path: Path
    size_bytes: int
    fragment_count: int
    media_duration_s: float
    elapsed_s: float


class DownloadPipeline:
    """
    Sequences the manifest parser, fetcher and reassembler for a single video.

    Fragments are fetched strictly one after another: fragment i+1 is not
    requested until fragment i has been accepted. Any error moves the pipeline
    to FAILED, discards partial state and is re-raised unchanged. An instance
    runs at most once.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        sink: Sink,
        on_progress: ProgressCallback | None = None,
        on_state_change: StateCallback | None = None,
    ):
        self.fetcher = fetcher
        self.sink = sink
        self._on_progress = on_progress
        self._on_state_change = on_state_change
        self.state = PipelineState.IDLE
        self.current_fragment: int | None = None
        self.error_message: str | None = None
        self._reassembler: ContainerReassembler | None = None

    def _transition(self, state: PipelineState) -> None:
        log.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state
        if self._on_state_change:
            self._on_state_change(state)

    def _emit_progress(self, fraction: float) -> None:
        if self._on_progress:
            self._on_progress(fraction)

    async def run(
        self, manifest_text: str, suggested_name: str, base_url: str | None = None
    ) -> PipelineResult:
        """
        Executes the whole download.

        Raises:
            PipelineStateError: If this instance already ran.
            ParseError, FetchError, ReassemblyError, PersistenceError: Surfaced
            verbatim after the pipeline entered FAILED.
        """
        if self.state is not PipelineState.IDLE:
            raise PipelineStateError(
                f"Pipeline already used (state: {self.state.value})."
            )

        start_time = time.monotonic()
        try:
            self._transition(PipelineState.PARSING_MANIFEST)
            manifest = manifest_parser.parse(manifest_text, base_url=base_url)
            reassembler = await self._download(manifest)

            self._transition(PipelineState.FINALIZING)
            data = reassembler.finalize()
            path = await self.sink.save(data, suggested_name)
        except asyncio.CancelledError:
            self._fail("Download cancelled.")
            raise
        except Exception as e:
            self._fail(str(e))
            raise

        self._transition(PipelineState.DONE)
        return PipelineResult(
            path=path,
            size_bytes=len(data),
            fragment_count=len(manifest.fragments),
            media_duration_s=manifest.total_duration,
            elapsed_s=time.monotonic() - start_time,
        )

    async def _download(self, manifest: ParsedManifest) -> ContainerReassembler:
        reassembler = ContainerReassembler(len(manifest.fragments))
        self._reassembler = reassembler

        media = list(manifest.fragments)
        if manifest.init is not None:
            self._transition(PipelineState.FETCHING_INIT)
            init_data = await self.fetcher.fetch(
                manifest.init.url, manifest.init.byte_range
            )
            reassembler.accept_init(init_data)
        else:
            # The first media fragment carries ftyp/moov itself and is kept whole
            self._transition(PipelineState.FETCHING_MEDIA)
            self.current_fragment = 0
            first = media.pop(0)
            first_data = await self.fetcher.fetch(first.url, first.byte_range)
            self._emit_progress(
                reassembler.accept_init(first_data, counts_as_media=True)
            )

        if self.state is not PipelineState.FETCHING_MEDIA:
            self._transition(PipelineState.FETCHING_MEDIA)
        offset = len(manifest.fragments) - len(media)
        for index, fragment in enumerate(media, start=offset):
            self.current_fragment = index
            data = await self.fetcher.fetch(fragment.url, fragment.byte_range)
            self._emit_progress(reassembler.accept_media(data))

        return reassembler

    def _fail(self, message: str) -> None:
        if self._reassembler is not None:
            self._reassembler.release()
        self.error_message = message
        self._transition(PipelineState.FAILED)
        log.debug(f"Pipeline failed: {message}")


async def run_pipeline(
    fetcher: Fetcher,
    sink: Sink,
    manifest_text: str,
    suggested_name: str,
    on_progress: ProgressCallback | None = None,
    base_url: str | None = None,
) -> PipelineResult:
    """Convenience wrapper that runs a fresh pipeline instance."""
    pipeline = DownloadPipeline(fetcher, sink, on_progress=on_progress)
    return await pipeline.run(manifest_text, suggested_name, base_url=base_url)
