"""Location tracking on top of a pluggable provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Optional, Protocol, Sequence

from qrcation.errors import (
    LocationError,
    PermissionDeniedError,
    ServiceDisabledError,
)
from qrcation.latest_fix import LatestFix
from qrcation.models import AuthorizationStatus, Location

logger = logging.getLogger(__name__)


class LocationDelegate(Protocol):
    def on_locations(self, locations: Sequence[Location]) -> None: ...

    def on_error(self, error: Exception) -> None: ...

    def on_authorization_changed(self, status: AuthorizationStatus) -> None: ...


class LocationProvider(ABC):
    """Source of location updates.

    Providers may call the delegate from any thread.
    """

    def __init__(self) -> None:
        self.delegate: Optional[LocationDelegate] = None

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus:
        """Return the current authorization state."""

    @abstractmethod
    def request_authorization(self) -> None:
        """Ask for access; the answer arrives via on_authorization_changed."""

    @abstractmethod
    def services_enabled(self) -> bool:
        """Return False when location services are globally off."""

    @abstractmethod
    def start_updates(self) -> None: ...

    @abstractmethod
    def stop_updates(self) -> None: ...


class LocationTracker:
    """Keeps the latest fix reported by a provider."""

    def __init__(
        self, provider: LocationProvider, slot: Optional[LatestFix] = None
    ) -> None:
        self._provider = provider
        self._slot = slot if slot is not None else LatestFix()
        self._updating = False
        self.problem: Optional[LocationError] = None
        provider.delegate = self

    @property
    def slot(self) -> LatestFix:
        return self._slot

    @property
    def is_updating(self) -> bool:
        return self._updating

    def start(self) -> None:
        status = self._provider.authorization_status()
        if not status.is_determined:
            logger.info("Requesting location authorization")
            self._provider.request_authorization()
            return
        self.on_authorization_changed(status)

    def stop(self) -> None:
        if not self._updating:
            return
        self._updating = False
        self._provider.stop_updates()
        logger.info("Location updates stopped")

    def current_fix(self) -> Optional[Location]:
        return self._slot.read()

    # --- Delegate callbacks ---
    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        if not status.is_determined:
            return
        if not status.is_granted:
            self.problem = PermissionDeniedError(
                f"location permission not allowed: {status.value}"
            )
            logger.warning("Permission not allowed? status: %s", status.value)
            return
        self._start_updates()

    def on_locations(self, locations: Sequence[Location]) -> None:
        if not locations:
            return
        self._slot.write(locations[-1])

    def on_error(self, error: Exception) -> None:
        logger.warning("Location error: %s", error)

    def _start_updates(self) -> None:
        if self._updating:
            return
        if not self._provider.services_enabled():
            self.problem = ServiceDisabledError("location services not enabled")
            logger.warning("Location services not enabled")
            return
        self.problem = None
        self._provider.start_updates()
        self._updating = True
        logger.info("Location updates started")
