"""
Minimal ISO-BMFF box navigation: enough to find top-level boxes by type and to
skip the header boxes repeated at the start of fMP4 fragments.
"""

import struct
from typing import Iterator

BOX_HEADER_SIZE = 8

FTYP = b"ftyp"
MOOV = b"moov"

# Boxes that only belong in the initialization segment
HEADER_BOX_TYPES = frozenset({FTYP, MOOV})


def read_box_header(data: bytes, offset: int) -> tuple[bytes, int] | None:
    """
    Read a box header at the given offset.

    Returns:
        (box_type, total_box_size) or None if fewer than 8 bytes remain.
        Size values 0 and 1 are returned as-is; callers treat them as
        unsupported.
    """
    if offset + BOX_HEADER_SIZE > len(data):
        return None
    size, box_type = struct.unpack_from(">I4s", data, offset)
    return box_type, size


def iter_boxes(data: bytes) -> Iterator[tuple[bytes, int, int]]:
    """
    Iterate over top-level boxes with a usable 32-bit size.

    Yields:
        (box_type, offset, total_size)
    """
    offset = 0
    while (header := read_box_header(data, offset)) is not None:
        box_type, size = header
        if size < BOX_HEADER_SIZE or offset + size > len(data):
            break
        yield box_type, offset, size
        offset += size


def find_box(data: bytes, target: bytes) -> bytes | None:
    """Find a top-level box by type and return it including its header."""
    for box_type, offset, size in iter_boxes(data):
        if box_type == target:
            return data[offset : offset + size]
    return None


def header_boxes_end(
    data: bytes, skip_types: frozenset[bytes] = HEADER_BOX_TYPES
) -> int:
    """
    Returns the offset of the first top-level box whose type is not in
    `skip_types`, or len(data) if every box was skipped. A skipped box that
    claims more bytes than remain consumes the rest of the buffer.
    """
    offset = 0
    while (header := read_box_header(data, offset)) is not None:
        box_type, size = header
        if box_type not in skip_types:
            break
        if size < BOX_HEADER_SIZE:
            break
        offset += size
    return min(offset, len(data))


def strip_header_boxes(data: bytes) -> bytes:
    """Drops leading ftyp/moov boxes and returns the remaining media payload."""
    return data[header_boxes_end(data) :]
