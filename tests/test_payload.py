"""Tests for payload formatting."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re

import pytest

from qrcation.models import Location, Sample
from qrcation.payload import (
    epoch_millis,
    format_payload,
    format_utc_offset,
    utc_offset_hours,
)

PLUS_TWO = timezone(timedelta(hours=2))


def _sample(lat: float, lon: float, seconds: float = 1461400000.0) -> Sample:
    return Sample(
        location=Location(lat, lon),
        timestamp=datetime.fromtimestamp(seconds, timezone.utc),
    )


@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        (0.0, "0"),
        (-0.0, "0"),
        (2.0, "+2"),
        (-5.0, "-5"),
        (5.5, "+5.5"),
        (5.75, "+5.75"),
        (-3.5, "-3.5"),
        (14.0, "+14"),
    ],
)
def test_format_utc_offset(hours: float, expected: str) -> None:
    assert format_utc_offset(hours) == expected


def test_utc_offset_hours_uses_given_zone() -> None:
    at = datetime(2016, 4, 23, tzinfo=timezone.utc)
    assert utc_offset_hours(PLUS_TWO, at) == 2.0
    half = timezone(timedelta(hours=-9, minutes=-30))
    assert utc_offset_hours(half, at) == -9.5


def test_epoch_millis_truncates() -> None:
    base = datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert epoch_millis(base) == 1577836800000
    assert epoch_millis(base.replace(microsecond=123456)) == 1577836800123
    assert epoch_millis(base.replace(microsecond=999600)) == 1577836800999
    assert epoch_millis(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0


def test_fixture_example_encode_text() -> None:
    payload = format_payload(_sample(52.5014787, 13.4358693), PLUS_TWO)
    assert payload.encode_text == "52.5014787, 13.4358693 1461400000000 +2"


def test_fixture_example_display_text() -> None:
    sample = _sample(52.5014787, 13.4358693)
    payload = format_payload(sample, PLUS_TWO)
    lines = payload.display_text.split("\n")
    local = sample.timestamp.astimezone(PLUS_TWO)
    assert lines == [
        "LatLong: 52.501479, 13.435869",
        f"Time: {local.strftime('%x %X')}",
        "Timezone: +2",
    ]


@pytest.mark.parametrize(
    ("lat", "lon"),
    [(0.0, 0.0), (-33.8688, 151.2093), (89.9999999, -179.5), (1.5, -0.25)],
)
def test_display_coordinates_have_six_decimals(lat: float, lon: float) -> None:
    payload = format_payload(_sample(lat, lon), timezone.utc)
    first = payload.display_text.split("\n")[0]
    match = re.fullmatch(r"LatLong: (-?\d+\.(\d+)), (-?\d+\.(\d+))", first)
    assert match is not None
    assert len(match.group(2)) == 6
    assert len(match.group(4)) == 6


def test_encode_text_layout_uses_full_precision() -> None:
    payload = format_payload(_sample(-33.8688197, 151.2092955), timezone.utc)
    assert re.fullmatch(
        r"-33\.8688197, 151\.2092955 \d+ 0", payload.encode_text
    )


def test_negative_offset_has_no_plus() -> None:
    payload = format_payload(
        _sample(40.7128, -74.006), timezone(timedelta(hours=-5))
    )
    assert payload.encode_text.endswith(" -5")
    assert payload.display_text.endswith("Timezone: -5")


def test_local_timezone_is_default() -> None:
    sample = _sample(1.0, 2.0)
    payload = format_payload(sample)
    expected = format_utc_offset(utc_offset_hours(None, sample.timestamp))
    assert payload.encode_text.endswith(f" {expected}")
    assert len(payload.display_text.split("\n")) == 3


def test_fixture_sample_uses_reference_coordinates() -> None:
    now = datetime.fromtimestamp(1461400000.0, timezone.utc)
    payload = format_payload(Sample.fixture(now), PLUS_TWO)
    assert payload.encode_text == "52.5014787, 13.4358693 1461400000000 +2"
