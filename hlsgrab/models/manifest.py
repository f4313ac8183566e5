"""
Data structures describing a parsed HLS media playlist.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ByteRange:
    """Absolute byte offset and length of a fragment within its origin resource."""

    offset: int
    length: int

    def __post_init__(self):
        if self.length <= 0:
            raise ValueError(
                f"Byte range length must be positive, got {self.length}."
            )
        if self.offset < 0:
            raise ValueError(f"Byte range offset cannot be negative: {self.offset}.")

    @property
    def end(self) -> int:
        """Inclusive index of the last byte in the range."""
        return self.offset + self.length - 1

    def header_value(self) -> str:
        return f"bytes={self.offset}-{self.end}"


def fetch_key(url: str, byte_range: ByteRange | None) -> str:
    """Identity used by the retry manager to count attempts."""
    if byte_range is None:
        return url
    return f"{url}_{byte_range.offset}_{byte_range.length}"


@dataclass(frozen=True)
class FragmentRef:
    """A reference to one media fragment. `duration` is informational only."""

    url: str
    byte_range: ByteRange | None = None
    duration: float | None = None

    @property
    def key(self) -> str:
        return fetch_key(self.url, self.byte_range)


@dataclass(frozen=True)
class InitFragmentRef(FragmentRef):
    """The fragment carrying track and codec configuration (ftyp + moov)."""


@dataclass(frozen=True)
class ParsedManifest:
    """An optional initialization fragment plus the ordered media fragments."""

    init: InitFragmentRef | None = None
    fragments: tuple[FragmentRef, ...] = field(default_factory=tuple)

    @property
    def total_duration(self) -> float:
        return sum(f.duration for f in self.fragments if f.duration is not None)
