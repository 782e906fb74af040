"""Value types shared across the sampling pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from PIL import Image

FIXTURE_LATITUDE = 52.5014787
FIXTURE_LONGITUDE = 13.4358693


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Sample:
    """A location paired with the instant it was sampled."""

    location: Location
    timestamp: datetime

    @classmethod
    def fixture(cls, now: Optional[datetime] = None) -> "Sample":
        """Return a sample at the fixture coordinates."""
        return cls(
            location=Location(FIXTURE_LATITUDE, FIXTURE_LONGITUDE),
            timestamp=now or utc_now(),
        )


@dataclass(frozen=True)
class EncodedPayload:
    encode_text: str
    display_text: str


@dataclass(frozen=True)
class RenderedResult:
    """Finished image and label for one tick."""

    image: Optional["Image.Image"]
    display_text: str
    encode_text: str


class AuthorizationStatus(Enum):
    NOT_DETERMINED = "undetermined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    AUTHORIZED_ALWAYS = "always"
    AUTHORIZED_WHEN_IN_USE = "granted"

    @property
    def is_granted(self) -> bool:
        return self in (
            AuthorizationStatus.AUTHORIZED_ALWAYS,
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
        )

    @property
    def is_determined(self) -> bool:
        return self is not AuthorizationStatus.NOT_DETERMINED
