"""
Shared fakes and byte builders for the test suite.
"""

import struct
from pathlib import Path

from hlsgrab.models.manifest import ByteRange


def make_box(box_type: bytes, payload: bytes = b"") -> bytes:
    """Builds an ISO-BMFF box with a 32-bit size header."""
    return struct.pack(">I4s", 8 + len(payload), box_type) + payload


def make_init_segment(size: int = 500) -> bytes:
    """An ftyp + moov init segment padded to exactly `size` bytes."""
    ftyp = make_box(b"ftyp", b"isom\x00\x00\x02\x00isomiso6mp41")
    moov_payload = b"\x00" * (size - len(ftyp) - 8)
    return ftyp + make_box(b"moov", moov_payload)


def make_media_fragment(payload: bytes, with_headers: bool = True) -> bytes:
    """A media fragment, optionally prefixed by repeated ftyp/moov boxes."""
    body = make_box(b"moof", b"\x01" * 8) + make_box(b"mdat", payload)
    if not with_headers:
        return body
    return make_box(b"ftyp", b"isom") + make_box(b"moov", b"\x02" * 16) + body


class FakeFetcher:
    """Serves canned bytes per URL and records every call in order."""

    def __init__(self, responses: dict[str, bytes | BaseException]):
        self.responses = responses
        self.calls: list[tuple[str, ByteRange | None]] = []

    async def fetch(self, url: str, byte_range: ByteRange | None = None) -> bytes:
        self.calls.append((url, byte_range))
        value = self.responses[url]
        if isinstance(value, BaseException):
            raise value
        return value


class MemorySink:
    """Keeps saved buffers in memory instead of writing files."""

    def __init__(self):
        self.saved: dict[str, bytes] = {}

    async def save(self, data: bytes, suggested_name: str) -> Path:
        self.saved[suggested_name] = data
        return Path(suggested_name)
