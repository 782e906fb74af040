"""Text payloads built from a sample.

Two strings come out of every sample: a compact one that goes into the QR
code and a three line label for people. The code text keeps full coordinate
precision; the label rounds to six decimals.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from qrcation.models import EncodedPayload, Sample

SECONDS_PER_HOUR = 60.0 * 60.0
DISPLAY_DATE_FORMAT = "%x %X"


def epoch_millis(timestamp: datetime) -> int:
    """Milliseconds since the Unix epoch, truncated."""
    return int(timestamp.timestamp() * 1000)


def utc_offset_hours(tz: Optional[tzinfo], at: datetime) -> float:
    """Offset of ``tz`` (local time when None) from UTC at ``at``, in hours."""
    local = at.astimezone(tz)
    offset = local.utcoffset()
    seconds = offset.total_seconds() if offset is not None else 0.0
    return seconds / SECONDS_PER_HOUR


def format_utc_offset(hours: float) -> str:
    """Render an hour offset; only strictly positive values get a '+'."""
    if float(hours).is_integer():
        text = str(int(hours))
    else:
        text = repr(float(hours))
    return f"+{text}" if hours > 0 else text


def format_payload(sample: Sample, tz: Optional[tzinfo] = None) -> EncodedPayload:
    """Build the encode text and display text for ``sample``."""
    lat = sample.location.latitude
    lon = sample.location.longitude
    local_time = sample.timestamp.astimezone(tz)
    timezone_text = format_utc_offset(utc_offset_hours(tz, sample.timestamp))

    lat_long_text = f"{lat!r}, {lon!r}"
    encode_text = f"{lat_long_text} {epoch_millis(sample.timestamp)} {timezone_text}"
    display_text = "\n".join(
        (
            f"LatLong: {lat:.6f}, {lon:.6f}",
            f"Time: {local_time.strftime(DISPLAY_DATE_FORMAT)}",
            f"Timezone: {timezone_text}",
        )
    )
    return EncodedPayload(encode_text=encode_text, display_text=display_text)
