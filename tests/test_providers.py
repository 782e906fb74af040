"""Tests for location providers."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from qrcation.config import AppConfig
from qrcation.errors import StreamError
from qrcation.models import AuthorizationStatus, Location
from qrcation.providers import (
    FixtureProvider,
    NmeaProvider,
    build_provider,
    parse_nmea_sentence,
)

GGA = "$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47"
RMC = "$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A"


class _Delegate:
    def __init__(self) -> None:
        self.batches: list[list[Location]] = []
        self.errors: list[Exception] = []
        self.statuses: list[AuthorizationStatus] = []

    def on_locations(self, locations) -> None:
        self.batches.append(list(locations))

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        self.statuses.append(status)


def test_parse_gga() -> None:
    location = parse_nmea_sentence(GGA)
    assert location is not None
    assert location.latitude == pytest.approx(48.1173)
    assert location.longitude == pytest.approx(11.516666, abs=1e-6)


def test_parse_rmc() -> None:
    location = parse_nmea_sentence(RMC + "\r\n")
    assert location is not None
    assert location.latitude == pytest.approx(48.1173)


def test_parse_southern_western_hemisphere() -> None:
    line = "$GNGGA,000000,3352.000,S,15112.000,W,1,08,0.9,10.0,M,0.0,M,,"
    location = parse_nmea_sentence(line)
    assert location is not None
    assert location.latitude == pytest.approx(-33.866666, abs=1e-6)
    assert location.longitude == pytest.approx(-151.2)


@pytest.mark.parametrize(
    "line",
    [
        GGA[:-2] + "00",
        "$GPGGA,123519,4807.038,N,01131.000,E,0,00,,,M,,M,,",
        "$GPRMC,123519,V,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W",
        "$GPGSV,3,1,11,03,03,111,00,04,15,270,00",
        "$GPGGA,123519,,N,01131.000,E,1,08",
        "garbage",
        "",
    ],
)
def test_parse_rejects_unusable_sentences(line: str) -> None:
    assert parse_nmea_sentence(line) is None


def test_fixture_request_notifies_delegate() -> None:
    provider = FixtureProvider(authorization=AuthorizationStatus.NOT_DETERMINED)
    delegate = _Delegate()
    provider.delegate = delegate
    provider.request_authorization()
    provider.request_authorization()
    assert delegate.statuses == [AuthorizationStatus.AUTHORIZED_WHEN_IN_USE]


def test_nmea_provider_replays_file(tmp_path: Path) -> None:
    log = tmp_path / "track.nmea"
    log.write_text(
        "\n".join(
            [
                GGA,
                "$GPGSV,3,1,11,03,03,111,00,04,15,270,00",
                "$GNGGA,000000,3352.000,S,15112.000,W,1,08,0.9,10.0,M,0.0,M,,",
            ]
        ),
        encoding="ascii",
    )
    provider = NmeaProvider(log)
    delegate = _Delegate()
    provider.delegate = delegate
    assert provider.services_enabled() is True
    assert provider.authorization_status().is_granted
    provider.start_updates()
    provider.join(timeout=2.0)
    assert len(delegate.batches) == 2
    assert all(len(batch) == 1 for batch in delegate.batches)
    assert delegate.batches[-1][0].latitude == pytest.approx(-33.866666, abs=1e-6)
    provider.stop_updates()


def test_nmea_provider_missing_path_disables_services(tmp_path: Path) -> None:
    provider = NmeaProvider(tmp_path / "missing.nmea")
    assert provider.services_enabled() is False


def test_nmea_provider_reports_read_errors(tmp_path: Path) -> None:
    provider = NmeaProvider(tmp_path)
    delegate = _Delegate()
    provider.delegate = delegate
    provider.start_updates()
    provider.join(timeout=2.0)
    assert len(delegate.errors) == 1
    assert isinstance(delegate.errors[0], StreamError)
    assert delegate.batches == []


def test_build_provider_fixture() -> None:
    cfg = AppConfig(fixture_latitude=1.5, fixture_longitude=-2.5, fixture_authorization="denied")
    provider = build_provider(cfg)
    assert isinstance(provider, FixtureProvider)
    assert provider.location == Location(1.5, -2.5)
    assert provider.authorization_status() is AuthorizationStatus.DENIED


def test_build_provider_nmea(tmp_path: Path) -> None:
    cfg = AppConfig(provider="nmea", nmea_path=str(tmp_path / "a.nmea"), nmea_replay_delay=0.0)
    provider = build_provider(cfg)
    assert isinstance(provider, NmeaProvider)
    assert provider.path == tmp_path / "a.nmea"


def test_build_provider_nmea_requires_path() -> None:
    with pytest.raises(ValueError):
        build_provider(AppConfig(provider="nmea"))


class _BlockedThread:
    """Reader thread stuck in a read that ignores the stop request."""

    def __init__(self) -> None:
        self.joins: list[float | None] = []

    def is_alive(self) -> bool:
        return True

    def join(self, timeout: float | None = None) -> None:
        self.joins.append(timeout)


def test_nmea_stop_keeps_reader_that_has_not_exited(tmp_path: Path, caplog) -> None:
    provider = NmeaProvider(tmp_path / "gps.nmea")
    blocked = _BlockedThread()
    provider._thread = blocked  # type: ignore[assignment]
    with caplog.at_level(logging.WARNING, logger="qrcation.providers"):
        provider.stop_updates()
    assert blocked.joins == [0.5]
    assert provider._thread is blocked
    assert "still busy" in caplog.text
    provider.start_updates()
    assert provider._thread is blocked
    assert not provider._stop_event.is_set()
