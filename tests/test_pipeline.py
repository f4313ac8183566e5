import asyncio

import pytest

from hlsgrab.core.pipeline import DownloadPipeline, PipelineState, run_pipeline
from hlsgrab.exceptions import (
    NoFragmentsError,
    PersistenceError,
    PipelineStateError,
    RetryExhaustedError,
)
from hlsgrab.models.manifest import ByteRange

from .helpers import FakeFetcher, MemorySink, make_init_segment, make_media_fragment

VIDEO_URL = "https://cdn.example.com/clip/video.m4s"
BYTE_RANGE_MANIFEST = """#EXTM3U
#EXT-X-MAP:URI="video.m4s",BYTERANGE="500@0"
#EXTINF:4.0,
#EXT-X-BYTERANGE:1000@500
video.m4s
#EXTINF:4.0,
#EXT-X-BYTERANGE:1000@1500
video.m4s
"""
BASE_URL = "https://cdn.example.com/clip/hd.m3u8"


class RangeFetcher(FakeFetcher):
    """Answers by byte range instead of URL."""

    def __init__(self, by_offset: dict[int, bytes | BaseException]):
        super().__init__({})
        self.by_offset = by_offset

    async def fetch(self, url, byte_range=None):
        self.calls.append((url, byte_range))
        value = self.by_offset[byte_range.offset]
        if isinstance(value, BaseException):
            raise value
        return value


def range_fetcher() -> RangeFetcher:
    return RangeFetcher(
        {
            0: make_init_segment(500),
            500: make_media_fragment(b"A" * 900),
            1500: make_media_fragment(b"B" * 900),
        }
    )


@pytest.mark.asyncio
async def test_end_to_end_run_fetches_in_order_and_saves():
    fetcher = range_fetcher()
    sink = MemorySink()
    progress: list[float] = []
    states: list[PipelineState] = []
    pipeline = DownloadPipeline(
        fetcher, sink, on_progress=progress.append, on_state_change=states.append
    )

    result = await pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4", base_url=BASE_URL)

    assert fetcher.calls == [
        (VIDEO_URL, ByteRange(offset=0, length=500)),
        (VIDEO_URL, ByteRange(offset=500, length=1000)),
        (VIDEO_URL, ByteRange(offset=1500, length=1000)),
    ]
    assert progress == [50.0, 100.0]
    assert states == [
        PipelineState.PARSING_MANIFEST,
        PipelineState.FETCHING_INIT,
        PipelineState.FETCHING_MEDIA,
        PipelineState.FINALIZING,
        PipelineState.DONE,
    ]
    expected = (
        make_init_segment(500)
        + make_media_fragment(b"A" * 900, with_headers=False)
        + make_media_fragment(b"B" * 900, with_headers=False)
    )
    assert sink.saved["clip.mp4"] == expected
    assert result.size_bytes == len(expected)
    assert result.fragment_count == 2
    assert result.media_duration_s == 8.0
    assert result.elapsed_s >= 0
    assert pipeline.state is PipelineState.DONE


@pytest.mark.asyncio
async def test_empty_manifest_fails_without_fetching():
    fetcher = FakeFetcher({})
    sink = MemorySink()
    pipeline = DownloadPipeline(fetcher, sink)

    with pytest.raises(NoFragmentsError):
        await pipeline.run("#EXTM3U\n#EXT-X-ENDLIST\n", "clip.mp4")

    assert fetcher.calls == []
    assert sink.saved == {}
    assert pipeline.state is PipelineState.FAILED
    assert pipeline.error_message == "No segments found in manifest."


@pytest.mark.asyncio
async def test_fragment_failure_stops_run_without_saving():
    fetcher = range_fetcher()
    fetcher.by_offset[500] = RetryExhaustedError(
        "video.m4s_500_1000", 3, TimeoutError("timed out")
    )
    sink = MemorySink()
    progress: list[float] = []
    pipeline = DownloadPipeline(fetcher, sink, on_progress=progress.append)

    with pytest.raises(RetryExhaustedError):
        await pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4")

    # The third fragment is never requested
    assert len(fetcher.calls) == 2
    assert progress == []
    assert sink.saved == {}
    assert pipeline.state is PipelineState.FAILED
    assert pipeline.current_fragment == 0


@pytest.mark.asyncio
async def test_sink_failure_marks_pipeline_failed():
    class FailingSink:
        async def save(self, data, suggested_name):
            raise PersistenceError("'clip.mp4' already exists.")

    pipeline = DownloadPipeline(range_fetcher(), FailingSink())

    with pytest.raises(PersistenceError):
        await pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4")
    assert pipeline.state is PipelineState.FAILED


@pytest.mark.asyncio
async def test_pipeline_cannot_be_reused():
    pipeline = DownloadPipeline(range_fetcher(), MemorySink())
    await pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4")

    with pytest.raises(PipelineStateError):
        await pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4")


@pytest.mark.asyncio
async def test_first_fragment_serves_as_init_when_map_is_missing():
    first = make_init_segment(300) + make_media_fragment(b"1", with_headers=False)
    second = make_media_fragment(b"2")
    fetcher = FakeFetcher({"a.m4s": first, "b.m4s": second})
    sink = MemorySink()
    progress: list[float] = []

    await run_pipeline(
        fetcher,
        sink,
        "#EXTINF:1,\na.m4s\n#EXTINF:1,\nb.m4s\n",
        "clip.mp4",
        on_progress=progress.append,
    )

    assert [url for url, _ in fetcher.calls] == ["a.m4s", "b.m4s"]
    assert progress == [50.0, 100.0]
    assert sink.saved["clip.mp4"] == first + make_media_fragment(
        b"2", with_headers=False
    )


@pytest.mark.asyncio
async def test_cancellation_marks_pipeline_failed():
    started = asyncio.Event()

    class SlowFetcher:
        async def fetch(self, url, byte_range=None):
            started.set()
            await asyncio.sleep(60)

    sink = MemorySink()
    pipeline = DownloadPipeline(SlowFetcher(), sink)
    task = asyncio.create_task(pipeline.run(BYTE_RANGE_MANIFEST, "clip.mp4"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert pipeline.state is PipelineState.FAILED
    assert sink.saved == {}
