"""
Parses HLS media playlists that address fMP4 fragments by byte range.
"""

import logging
import re
from urllib.parse import urljoin

from hlsgrab.exceptions import InvalidByteRangeError, NoFragmentsError, ParseError
from hlsgrab.models.manifest import (
    ByteRange,
    FragmentRef,
    InitFragmentRef,
    ParsedManifest,
)

log = logging.getLogger(__name__)

MAP_TAG = "#EXT-X-MAP:"
INFO_TAG = "#EXTINF:"
RANGE_TAG = "#EXT-X-BYTERANGE:"

_URI_RE = re.compile(r'URI="([^"]+)"')
_BYTERANGE_RE = re.compile(r'BYTERANGE="([^"]*)"')
_DIGITS_RE = re.compile(r"^\d+$")


def decode_manifest(data: bytes, origin: str) -> str:
    """
    Decodes a playlist body as UTF-8.

    Raises:
        ParseError: If the bytes are not valid UTF-8, which usually means the
        server returned something other than a playlist.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Manifest from '{origin}' is not valid UTF-8: {e}") from e


def _to_int(token: str, attribute: str) -> int:
    if not _DIGITS_RE.match(token):
        raise InvalidByteRangeError(
            f"Non-numeric value '{token}' in byte range attribute '{attribute}'."
        )
    return int(token)


def parse_byte_range(value: str, offset_optional: bool = True) -> ByteRange | None:
    """
    Parses a `<length>[@<offset>]` attribute.

    Returns None when the attribute has the wrong number of tokens, so the
    fragment proceeds without a byte range.

    Raises:
        InvalidByteRangeError: If a token is not a non-negative integer or the
        length is zero.
    """
    tokens = [t.strip() for t in value.strip().split("@")]
    if len(tokens) == 1 and offset_optional:
        tokens.append("0")
    if len(tokens) != 2 or not all(tokens):
        log.debug(f"Ignoring malformed byte range attribute '{value}'.")
        return None

    length = _to_int(tokens[0], value)
    offset = _to_int(tokens[1], value)
    if length == 0:
        raise InvalidByteRangeError(f"Byte range '{value}' has zero length.")
    return ByteRange(offset=offset, length=length)


def _parse_duration(value: str) -> float | None:
    try:
        return float(value.split(",", 1)[0].strip())
    except ValueError:
        log.debug(f"Ignoring unparsable segment duration '{value}'.")
        return None


def parse(manifest_text: str, base_url: str | None = None) -> ParsedManifest:
    """
    Turns manifest text into an ordered fragment list plus an optional
    initialization fragment.

    Args:
        manifest_text: The playlist body.
        base_url: URL of the playlist itself; relative URIs are resolved
            against it.

    Raises:
        NoFragmentsError: If no media fragment was found.
        InvalidByteRangeError: If a byte range holds a non-numeric value.
    """

    def resolve(uri: str) -> str:
        return urljoin(base_url, uri) if base_url else uri

    init: InitFragmentRef | None = None
    fragments: list[FragmentRef] = []
    pending: dict | None = None

    for raw_line in manifest_text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(MAP_TAG):
            if init is not None:
                log.debug("Ignoring additional EXT-X-MAP directive.")
                continue
            uri_match = _URI_RE.search(line)
            if not uri_match:
                continue
            byte_range = None
            if range_match := _BYTERANGE_RE.search(line):
                byte_range = parse_byte_range(
                    range_match.group(1), offset_optional=False
                )
            init = InitFragmentRef(
                url=resolve(uri_match.group(1)), byte_range=byte_range
            )

        elif line.startswith(INFO_TAG):
            pending = {
                "duration": _parse_duration(line[len(INFO_TAG) :]),
                "range": None,
            }

        elif line.startswith(RANGE_TAG):
            if pending is not None:
                pending["range"] = parse_byte_range(line[len(RANGE_TAG) :])

        elif not line.startswith("#"):
            if pending is None:
                log.debug(f"Ignoring URL line without a preceding EXTINF: {line}")
                continue
            fragments.append(
                FragmentRef(
                    url=resolve(line),
                    byte_range=pending["range"],
                    duration=pending["duration"],
                )
            )
            pending = None

    if not fragments:
        raise NoFragmentsError()

    log.debug(
        f"Parsed manifest: {len(fragments)} fragments, "
        f"init segment {'present' if init else 'absent'}."
    )
    return ParsedManifest(init=init, fragments=tuple(fragments))
