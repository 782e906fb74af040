"""Concrete location providers."""

from __future__ import annotations

from functools import reduce
import logging
from pathlib import Path
import threading
from typing import Optional

from qrcation.config import AppConfig
from qrcation.errors import StreamError
from qrcation.location import LocationProvider
from qrcation.models import (
    FIXTURE_LATITUDE,
    FIXTURE_LONGITUDE,
    AuthorizationStatus,
    Location,
)

logger = logging.getLogger(__name__)


class FixtureProvider(LocationProvider):
    """Provider that reports one fixed location when started."""

    def __init__(
        self,
        location: Optional[Location] = None,
        *,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
        grant_on_request: bool = True,
        enabled: bool = True,
    ) -> None:
        super().__init__()
        self.location = location or Location(FIXTURE_LATITUDE, FIXTURE_LONGITUDE)
        self._authorization = authorization
        self._grant_on_request = grant_on_request
        self._enabled = enabled
        self.started = False

    def authorization_status(self) -> AuthorizationStatus:
        return self._authorization

    def request_authorization(self) -> None:
        if self._authorization.is_determined:
            return
        self._authorization = (
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE
            if self._grant_on_request
            else AuthorizationStatus.DENIED
        )
        if self.delegate is not None:
            self.delegate.on_authorization_changed(self._authorization)

    def services_enabled(self) -> bool:
        return self._enabled

    def start_updates(self) -> None:
        self.started = True
        if self.delegate is not None:
            self.delegate.on_locations([self.location])

    def stop_updates(self) -> None:
        self.started = False


def _nmea_checksum_ok(body: str, checksum: str) -> bool:
    try:
        expected = int(checksum[:2], 16)
    except ValueError:
        return False
    actual = reduce(lambda acc, ch: acc ^ ord(ch), body, 0)
    return actual == expected


def _nmea_degrees(value: str, hemisphere: str) -> Optional[float]:
    """Convert ddmm.mmmm (or dddmm.mmmm) plus hemisphere to signed degrees."""
    if not value or hemisphere not in {"N", "S", "E", "W"}:
        return None
    try:
        raw = float(value)
    except ValueError:
        return None
    degrees = int(raw // 100)
    minutes = raw - degrees * 100
    result = degrees + minutes / 60.0
    if hemisphere in {"S", "W"}:
        result = -result
    return result


def parse_nmea_sentence(line: str) -> Optional[Location]:
    """Return the fix carried by a GGA or RMC sentence, if any."""
    line = line.strip()
    if not line.startswith("$"):
        return None
    body = line[1:]
    if "*" in body:
        body, checksum = body.split("*", 1)
        if not _nmea_checksum_ok(body, checksum):
            return None
    fields = body.split(",")
    kind = fields[0][-3:]
    if kind == "GGA" and len(fields) >= 7:
        if fields[6] in {"", "0"}:
            return None
        lat = _nmea_degrees(fields[2], fields[3])
        lon = _nmea_degrees(fields[4], fields[5])
    elif kind == "RMC" and len(fields) >= 7:
        if fields[2] != "A":
            return None
        lat = _nmea_degrees(fields[3], fields[4])
        lon = _nmea_degrees(fields[5], fields[6])
    else:
        return None
    if lat is None or lon is None:
        return None
    return Location(lat, lon)


class NmeaProvider(LocationProvider):
    """Reads NMEA 0183 sentences from a file or device on a daemon thread."""

    def __init__(self, path: Path, *, replay_delay: float = 0.0) -> None:
        super().__init__()
        self.path = Path(path)
        self._replay_delay = max(0.0, replay_delay)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED_ALWAYS

    def request_authorization(self) -> None:
        return None

    def services_enabled(self) -> bool:
        return self.path.exists()

    def start_updates(self) -> None:
        if self._thread and self._thread.is_alive():
            # A reader that has not exited yet keeps going.
            self._stop_event.clear()
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="NmeaReader", daemon=True
        )
        self._thread.start()

    def stop_updates(self) -> None:
        self._stop_event.set()
        if self._thread is None:
            return
        self._thread.join(timeout=0.5)
        if self._thread.is_alive():
            # Still blocked in a read; it exits on its next line.
            logger.warning("NMEA reader still busy after stop: %s", self.path)
            return
        self._thread = None

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        logger.info("Reading NMEA from %s", self.path)
        try:
            with open(self.path, "r", encoding="ascii", errors="replace") as handle:
                for line in handle:
                    if self._stop_event.is_set():
                        return
                    location = parse_nmea_sentence(line)
                    if location is not None:
                        self._deliver(location)
                    if self._replay_delay:
                        self._stop_event.wait(self._replay_delay)
        except OSError as exc:
            self._report(StreamError(f"{self.path}: {exc}"))
            return
        logger.info("NMEA stream ended: %s", self.path)

    def _deliver(self, location: Location) -> None:
        delegate = self.delegate
        if delegate is not None:
            delegate.on_locations([location])

    def _report(self, error: StreamError) -> None:
        delegate = self.delegate
        if delegate is not None:
            delegate.on_error(error)
        else:
            logger.warning("Location error: %s", error)


def build_provider(cfg: AppConfig) -> LocationProvider:
    """Create the provider selected by ``cfg``."""
    if cfg.provider == "nmea":
        if not cfg.nmea_path:
            raise ValueError("the nmea provider needs an NMEA path")
        return NmeaProvider(Path(cfg.nmea_path), replay_delay=cfg.nmea_replay_delay)
    return FixtureProvider(
        Location(cfg.fixture_latitude, cfg.fixture_longitude),
        authorization=AuthorizationStatus(cfg.fixture_authorization),
    )
