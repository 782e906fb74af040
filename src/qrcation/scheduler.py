"""Once-a-second sampling loop."""

from __future__ import annotations

import asyncio
from datetime import datetime, tzinfo
import logging
from typing import Any, Callable, Coroutine, Optional, Protocol

from qrcation.encoder import encode_code
from qrcation.location import LocationTracker
from qrcation.models import RenderedResult, Sample, utc_now
from qrcation.payload import format_payload

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0
MISSING_STATUS = "Location Missing"


class TimerHandle(Protocol):
    def stop(self) -> None: ...


class SchedulerHost(Protocol):
    """Foreground owner of the timer and the display surface."""

    def set_interval(
        self, interval: float, callback: Callable[[], Any]
    ) -> TimerHandle: ...

    def run_worker(self, work: Coroutine[Any, Any, None]) -> Any: ...

    def code_pixel_size(self) -> int: ...

    def show_status(self, text: str) -> None: ...

    def show_result(self, result: RenderedResult) -> None: ...


Renderer = Callable[[Sample, int, Optional[tzinfo]], RenderedResult]


def render_sample(
    sample: Sample, pixel_size: int, tz: Optional[tzinfo] = None
) -> RenderedResult:
    """Format and encode one sample. Safe to call off the display thread."""
    payload = format_payload(sample, tz)
    image = encode_code(payload.encode_text, pixel_size)
    return RenderedResult(
        image=image,
        display_text=payload.display_text,
        encode_text=payload.encode_text,
    )


class SampleScheduler:
    """Ticks every second and pushes a fresh code to the host.

    Formatting and encoding run in a worker thread; results are published
    back on the host's loop. Stopping only prevents future ticks, so a
    result already in flight may still land afterwards.
    """

    def __init__(
        self,
        host: SchedulerHost,
        tracker: LocationTracker,
        *,
        render: Renderer = render_sample,
        now: Callable[[], datetime] = utc_now,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._host = host
        self._tracker = tracker
        self._render = render
        self._now = now
        self._tz = tz
        self._timer: Optional[TimerHandle] = None
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        self.stop()
        self._timer = self._host.set_interval(TICK_INTERVAL, self.tick)
        logger.debug("Sampling started")

    def stop(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer = None
        logger.debug("Sampling stopped")

    # --- Lifecycle ---
    def on_background(self) -> None:
        self.stop()

    def on_foreground(self) -> None:
        self.start()

    def tick(self) -> None:
        self.tick_count += 1
        fix = self._tracker.current_fix()
        if fix is None:
            self._host.show_status(MISSING_STATUS)
            return
        sample = Sample(location=fix, timestamp=self._now())
        pixel_size = self._host.code_pixel_size()
        self._host.run_worker(self._render_and_publish(sample, pixel_size))

    async def _render_and_publish(self, sample: Sample, pixel_size: int) -> None:
        try:
            result = await asyncio.to_thread(
                self._render, sample, pixel_size, self._tz
            )
        except Exception:
            logger.exception("Sample render failed")
            return
        self._host.show_result(result)
