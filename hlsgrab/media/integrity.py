"""
Provides methods for checking the structure of reassembled MP4 buffers.
"""

import logging
import struct

from .boxes import FTYP, MOOV, find_box, read_box_header

log = logging.getLogger(__name__)

# ftyp brands that identify MP4/MOV containers
MP4_BRANDS = {
    b"isom",
    b"iso2",
    b"iso4",
    b"iso5",
    b"iso6",
    b"mp41",
    b"mp42",
    b"M4V ",
    b"avc1",
    b"dash",
    b"msdh",
    b"cmfc",
}


class FileIntegrityChecker:
    """A collection of static methods for validating reassembled output."""

    @staticmethod
    def check_mp4(data: bytes, name: str = "output") -> bool:
        """
        Performs a basic structural check on a reassembled MP4 buffer.

        The buffer must open with an ftyp box and contain a top-level moov box.
        An unknown major brand is logged but tolerated.

        Args:
            data: The finished buffer.
            name: Label used in log messages.

        Returns:
            True if the buffer looks like a playable MP4 file, False otherwise.
        """
        header = read_box_header(data, 0)
        if header is None or header[0] != FTYP:
            log.warning(f"MP4 integrity check failed for '{name}': Missing ftyp box.")
            return False

        if header[1] >= 12 and len(data) >= 12:
            major_brand = struct.unpack_from(">4s", data, 8)[0]
            if major_brand not in MP4_BRANDS:
                log.debug(f"'{name}' has an unusual major brand: {major_brand!r}")

        if find_box(data, MOOV) is None:
            log.warning(f"MP4 integrity check failed for '{name}': Missing moov box.")
            return False
        return True
