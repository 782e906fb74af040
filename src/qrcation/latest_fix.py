"""Single-slot holder for the most recent location fix."""

from __future__ import annotations

import threading
from typing import Optional

from qrcation.models import Location


class LatestFix:
    """Thread-safe single-slot cell for the latest fix.

    Writes replace the previous value; reads never clear it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Optional[Location] = None
        self._seq = 0

    def write(self, location: Location) -> None:
        with self._lock:
            self._value = location
            self._seq += 1

    def read(self) -> Optional[Location]:
        with self._lock:
            return self._value

    @property
    def seq(self) -> int:
        """Number of writes seen so far."""
        with self._lock:
            return self._seq
