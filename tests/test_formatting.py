import pytest

from hlsgrab.utils.formatting import (
    format_duration,
    format_fragment_count,
    format_playtime,
    format_size,
)


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512.0 B"), (1536, "1.5 KB"), (5 * 1024**2, "5.0 MB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0s"), (59.9, "59s"), (125, "2m 5s"), (3600, "1h"), (3725, "1h 2m 5s")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0:00"), (7.4, "0:07"), (272, "4:32"), (3729, "1:02:09")],
)
def test_format_playtime(seconds, expected):
    assert format_playtime(seconds) == expected


def test_format_fragment_count():
    assert format_fragment_count(1) == "1 fragment"
    assert format_fragment_count(12) == "12 fragments"
