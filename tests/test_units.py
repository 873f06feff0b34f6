import pytest

from trafficsrv.errors import InvalidFormat
from trafficsrv.units import parse_duration, parse_size


@pytest.mark.parametrize("text,expected", [
    ("0", 0),
    ("10", 10),
    ("+7", 7),
    ("10B", 10),
    ("10b", 10),
    ("1K", 1024),
    ("1k", 1024),
    ("10M", 10 * 1024 ** 2),
    ("2g", 2 * 1024 ** 3),
])
def test_parse_size(text, expected):
    assert parse_size(text) == expected


def test_parse_size_empty_means_default():
    assert parse_size("") == 0


@pytest.mark.parametrize("text", ["10X", "10KB", "K", "abc", "1.5M", " 10", "1_000", "10\n", "-5", "-5K"])
def test_parse_size_invalid(text):
    with pytest.raises(InvalidFormat):
        parse_size(text)


def test_parse_size_out_of_range():
    with pytest.raises(InvalidFormat):
        parse_size("9223372036854775807K")
    assert parse_size("8589934591G") == 8589934591 * 1024 ** 3


def test_invalid_format_is_value_error():
    with pytest.raises(ValueError):
        parse_size("nope")


@pytest.mark.parametrize("text,expected", [
    ("", 0.0),
    ("0", 0.0),
    ("1500ms", 1.5),
    ("2s", 2.0),
    ("1.5s", 1.5),
    (".5s", 0.5),
    ("1m", 60.0),
    ("1h30m", 5400.0),
    ("1m30s250ms", 90.25),
    ("100us", 100e-6),
    ("100µs", 100e-6),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["10", "1x", "ms", "1.5.5s", "-1s", "1s-", "abc", "+", "1 s"])
def test_parse_duration_invalid(text):
    with pytest.raises(InvalidFormat):
        parse_duration(text)
