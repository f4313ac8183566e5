"""
Accumulates fMP4 fragments into a single self-contained MP4 buffer.
"""

import logging

from hlsgrab.exceptions import ReassemblyError

from .boxes import MOOV, find_box, strip_header_boxes

log = logging.getLogger(__name__)


class ContainerReassembler:
    """
    Stateful filter for one download run.

    The initialization segment is stored verbatim. Every media fragment has
    its leading ftyp/moov boxes removed and the remainder queued in order.
    `finalize` joins everything into the output buffer and releases the state;
    the instance cannot be reused afterwards.
    """

    def __init__(self, total_fragments: int):
        if total_fragments < 1:
            raise ValueError("A run needs at least one media fragment.")
        self.total_fragments = total_fragments
        self._init_data: bytes | None = None
        self._payloads: list[bytes] = []
        self._consumed = 0
        self._closed = False

    @property
    def consumed(self) -> int:
        return self._consumed

    @property
    def progress(self) -> float:
        return min(100.0, self._consumed / self.total_fragments * 100)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ReassemblyError(
                "Reassembler already finalized or released; start a new run."
            )

    def accept_init(self, data: bytes, counts_as_media: bool = False) -> float:
        """
        Stores the initialization bytes. A second call overwrites the first.

        Args:
            data: The init segment (ftyp + moov).
            counts_as_media: Set when the manifest has no init segment and the
                first media fragment is used in its place, unstripped.
        """
        self._ensure_open()
        if self._init_data is not None:
            log.debug("Initialization segment replaced.")
        self._init_data = bytes(data)
        if find_box(self._init_data, MOOV) is None:
            log.debug("Initialization segment has no top-level moov box.")
        if counts_as_media:
            self._consumed += 1
        return self.progress

    def accept_media(self, data: bytes) -> float:
        """
        Strips header boxes from a media fragment and queues its payload.

        Returns:
            Percentage of expected fragments consumed so far (0-100).
        """
        self._ensure_open()
        payload = strip_header_boxes(data)
        if payload:
            self._payloads.append(payload)
        else:
            log.debug("Media fragment contained only header boxes.")
        self._consumed += 1
        return self.progress

    def finalize(self) -> bytes:
        """Joins the init segment and every payload, then releases the state."""
        self._ensure_open()
        if self._init_data is None:
            raise ReassemblyError("Cannot finalize: no initialization segment.")
        if self._consumed == 0:
            raise ReassemblyError("Cannot finalize: no media fragment was accepted.")

        result = b"".join([self._init_data, *self._payloads])
        log.debug(
            f"Reassembled {self._consumed} fragments into {len(result)} bytes."
        )
        self.release()
        return result

    def release(self) -> None:
        """Discards accumulated state without producing output."""
        self._init_data = None
        self._payloads = []
        self._closed = True
