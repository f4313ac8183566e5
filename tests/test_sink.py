import pytest

from hlsgrab.exceptions import PersistenceError
from hlsgrab.storage.sink import FileSink


@pytest.mark.asyncio
async def test_save_creates_directory_and_writes_file(tmp_path):
    sink = FileSink(tmp_path / "videos")

    path = await sink.save(b"\x00\x01data", "clip.mp4")

    assert path == tmp_path / "videos" / "clip.mp4"
    assert path.read_bytes() == b"\x00\x01data"
    assert not (tmp_path / "videos" / "clip.mp4.part").exists()


@pytest.mark.asyncio
async def test_save_refuses_to_overwrite_by_default(tmp_path):
    sink = FileSink(tmp_path)
    await sink.save(b"first", "clip.mp4")

    with pytest.raises(PersistenceError):
        await sink.save(b"second", "clip.mp4")
    assert (tmp_path / "clip.mp4").read_bytes() == b"first"


@pytest.mark.asyncio
async def test_save_overwrites_when_enabled(tmp_path):
    sink = FileSink(tmp_path, overwrite=True)
    await sink.save(b"first", "clip.mp4")

    await sink.save(b"second", "clip.mp4")

    assert (tmp_path / "clip.mp4").read_bytes() == b"second"


def test_target_path_sanitizes_name(tmp_path):
    sink = FileSink(tmp_path)

    path = sink.target_path("../clips/clip.mp4")

    assert path.parent == tmp_path
    assert "/" not in path.name
    assert path.name.endswith("clip.mp4")
    assert not sink.exists("../clips/clip.mp4")
