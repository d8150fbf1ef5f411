from __future__ import annotations

import pytest

from formation_leader.core.types import GeoFix
from formation_leader.radio.codec import PositionFrameParser, decode_position, encode_position


@pytest.mark.parametrize(
    "lat, lon, expected",
    [
        (0.0, 0.0, "o0a0#"),
        (0.0001, 0.0, "o0a0.0001#"),
        (45.0, 7.0, "o7a45#"),
        (45.1234567, 7.6543211, "o7.65432a45.1235#"),
        (-33.8688, 151.2093, "o151.209a-33.8688#"),
        (1e-05, -2.5e-06, "o-2.5e-06a1e-05#"),
    ],
)
def test_encode_position_matches_wire_format(lat, lon, expected):
    assert encode_position(GeoFix(latitude=lat, longitude=lon)) == expected


def test_decode_position_reads_longitude_first():
    fix = decode_position("o7.65432a45.1235#")
    assert fix.latitude == 45.1235
    assert fix.longitude == 7.65432


def test_decode_position_without_terminator():
    fix = decode_position("o-2.5e-06a1e-05")
    assert fix == GeoFix(latitude=1e-05, longitude=-2.5e-06)


@pytest.mark.parametrize("frame", ["", "o#", "a45o7#", "o7a#", "x7a45#", "o7a45b#"])
def test_decode_position_rejects_malformed(frame):
    with pytest.raises(ValueError):
        decode_position(frame)


def test_parser_handles_split_frames():
    parser = PositionFrameParser()
    assert parser.feed(b"o7.00") == []
    assert parser.feed(b"02a4") == []
    fixes = parser.feed(b"5#o7a46#")
    assert fixes == [GeoFix(lat=45.0, lon=7.0002), GeoFix(lat=46.0, lon=7.0)]


def test_parser_resyncs_after_noise():
    parser = PositionFrameParser()
    fixes = parser.feed(b"\x00\xffgarbage#zzo7a45#o1a2")
    assert fixes == [GeoFix(lat=45.0, lon=7.0)]
    assert parser.feed(b"#") == [GeoFix(lat=2.0, lon=1.0)]


def test_parser_drops_overflowing_buffer():
    parser = PositionFrameParser(max_buffer=16)
    assert parser.feed(b"o" + b"1" * 40) == []
    assert parser.feed(b"o7a45#") == [GeoFix(lat=45.0, lon=7.0)]
