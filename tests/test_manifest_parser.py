import pytest

from hlsgrab.exceptions import InvalidByteRangeError, NoFragmentsError
from hlsgrab.media.manifest_parser import parse, parse_byte_range
from hlsgrab.models.manifest import ByteRange

BASIC_MANIFEST = """#EXTM3U
#EXT-X-VERSION:7
#EXT-X-TARGETDURATION:4
#EXT-X-MAP:URI="video.m4s",BYTERANGE="500@0"
#EXTINF:4.000,
#EXT-X-BYTERANGE:1000@500
video.m4s
#EXTINF:3.5,
#EXT-X-BYTERANGE:800@1500
video.m4s
#EXT-X-ENDLIST
"""


def test_parses_init_and_fragments_in_order():
    manifest = parse(BASIC_MANIFEST)

    assert manifest.init is not None
    assert manifest.init.url == "video.m4s"
    assert manifest.init.byte_range == ByteRange(offset=0, length=500)
    assert [f.byte_range for f in manifest.fragments] == [
        ByteRange(offset=500, length=1000),
        ByteRange(offset=1500, length=800),
    ]
    assert [f.duration for f in manifest.fragments] == [4.0, 3.5]
    assert manifest.total_duration == pytest.approx(7.5)


def test_parse_is_deterministic():
    assert parse(BASIC_MANIFEST) == parse(BASIC_MANIFEST)


def test_fragment_without_byterange_has_none():
    manifest = parse("#EXTM3U\n#EXTINF:2.0,\nhttps://cdn.example.com/a.m4s\n")

    assert manifest.init is None
    assert len(manifest.fragments) == 1
    assert manifest.fragments[0].url == "https://cdn.example.com/a.m4s"
    assert manifest.fragments[0].byte_range is None


def test_byterange_without_offset_defaults_to_zero():
    manifest = parse("#EXTINF:2.0,\n#EXT-X-BYTERANGE:1234\nseg.m4s\n")

    assert manifest.fragments[0].byte_range == ByteRange(offset=0, length=1234)


def test_first_map_directive_wins():
    text = (
        '#EXT-X-MAP:URI="first.mp4",BYTERANGE="100@0"\n'
        '#EXT-X-MAP:URI="second.mp4",BYTERANGE="200@0"\n'
        "#EXTINF:1,\nseg.m4s\n"
    )
    manifest = parse(text)

    assert manifest.init.url == "first.mp4"
    assert manifest.init.byte_range.length == 100


def test_map_without_byterange_is_whole_resource():
    manifest = parse('#EXT-X-MAP:URI="init.mp4"\n#EXTINF:1,\nseg.m4s\n')

    assert manifest.init.url == "init.mp4"
    assert manifest.init.byte_range is None


def test_map_byterange_requires_offset():
    manifest = parse('#EXT-X-MAP:URI="init.mp4",BYTERANGE="500"\n#EXTINF:1,\nseg.m4s\n')

    assert manifest.init.byte_range is None


def test_malformed_byterange_is_dropped():
    manifest = parse("#EXTINF:1,\n#EXT-X-BYTERANGE:10@20@30\nseg.m4s\n")

    assert manifest.fragments[0].byte_range is None


def test_non_numeric_byterange_raises():
    with pytest.raises(InvalidByteRangeError):
        parse("#EXTINF:1,\n#EXT-X-BYTERANGE:abc@0\nseg.m4s\n")


def test_zero_length_byterange_raises():
    with pytest.raises(InvalidByteRangeError):
        parse_byte_range("0@10")


def test_url_line_without_extinf_is_ignored():
    manifest = parse("orphan.m4s\n#EXTINF:1,\nseg.m4s\n")

    assert [f.url for f in manifest.fragments] == ["seg.m4s"]


def test_unparsable_duration_becomes_none():
    manifest = parse("#EXTINF:abc,\nseg.m4s\n")

    assert manifest.fragments[0].duration is None


def test_relative_urls_resolve_against_base():
    manifest = parse(
        BASIC_MANIFEST, base_url="https://cdn.example.com/gifs/clip/hd.m3u8"
    )

    assert manifest.init.url == "https://cdn.example.com/gifs/clip/video.m4s"
    assert manifest.fragments[0].url == "https://cdn.example.com/gifs/clip/video.m4s"


def test_empty_manifest_raises():
    with pytest.raises(NoFragmentsError):
        parse("#EXTM3U\n#EXT-X-ENDLIST\n")


def test_map_only_manifest_raises():
    with pytest.raises(NoFragmentsError):
        parse('#EXTM3U\n#EXT-X-MAP:URI="init.mp4",BYTERANGE="500@0"\n')


def test_byte_range_header_and_key():
    manifest = parse(BASIC_MANIFEST)
    fragment = manifest.fragments[0]

    assert fragment.byte_range.header_value() == "bytes=500-1499"
    assert fragment.key == "video.m4s_500_1000"
