"""Textual-based TUI for QRcation."""

from __future__ import annotations

import asyncio
from datetime import tzinfo
import logging
from pathlib import Path
from typing import Optional

try:
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Container
    from textual import events
    from textual.widgets import Footer, Header, Static
    from rich.text import Text
except Exception as exc:  # pragma: no cover - depends on environment
    raise RuntimeError(
        "Textual is required for the TUI. Install the 'textual' dependency."
    ) from exc

from PIL import Image

from qrcation.config import AppConfig
from qrcation.encoder import code_pixel_size
from qrcation.location import LocationTracker
from qrcation.logging_setup import set_console_level
from qrcation.models import RenderedResult
from qrcation.scheduler import SampleScheduler
from qrcation.ui.code_rendering import render_code_text

logger = logging.getLogger(__name__)

INITIAL_STATUS = "No Location Yet"
PAUSED_STATUS = "Paused"


class QRcationApp(App):
    """Shows the current location and time as a QR code."""

    CSS_PATH = Path(__file__).with_name("app.tcss")
    TITLE = "QRcation"

    BINDINGS = [
        Binding("p", "toggle_pause", "Pause/Resume"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        tracker: LocationTracker,
        *,
        display_scale: float = 4.0,
        tz: Optional[tzinfo] = None,
    ) -> None:
        super().__init__()
        self.tracker = tracker
        self.scheduler = SampleScheduler(self, tracker, tz=tz)
        self._display_scale = display_scale
        self._image: Optional[Image.Image] = None
        self.info_text = INITIAL_STATUS
        self._info_label: Optional[Static] = None
        self._code_view: Optional[Static] = None
        self.publish_count = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with Container(id="root"):
            yield Static(INITIAL_STATUS, id="info_label", markup=False)
            yield Static(id="code_view", markup=False)
        yield Footer()

    # --- Scheduler host ---
    def code_pixel_size(self) -> int:
        width, height = self._code_view_size()
        return code_pixel_size(width, height * 2, self._display_scale)

    def show_status(self, text: str) -> None:
        self.info_text = text
        if self._info_label is not None:
            self._info_label.update(text)

    def show_result(self, result: RenderedResult) -> None:
        self.publish_count += 1
        self._image = result.image
        self.show_status(result.display_text)
        self._refresh_code_view()

    # --- Internal helpers ---
    def _code_view_size(self) -> tuple[int, int]:
        if self._code_view is None:
            return (0, 0)
        size = self._code_view.content_size or self._code_view.size
        return (max(0, size.width), max(0, size.height))

    def _refresh_code_view(self) -> None:
        if self._code_view is None:
            return
        width, height = self._code_view_size()
        text: Text = render_code_text(self._image, width, height)
        self._code_view.update(text)

    def _install_asyncio_exception_handler(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        def handler(_loop: asyncio.AbstractEventLoop, context: dict) -> None:
            exc = context.get("exception")
            if exc:
                logger.exception("Asyncio exception", exc_info=exc)
            else:
                logger.error("Asyncio error: %s", context.get("message"))

        loop.set_exception_handler(handler)

    def _log_heartbeat(self) -> None:
        logger.info(
            "Heartbeat running=%s ticks=%s published=%s updates=%s fix=%s problem=%s",
            self.scheduler.is_running,
            self.scheduler.tick_count,
            self.publish_count,
            self.tracker.slot.seq,
            self.tracker.current_fix() is not None,
            self.tracker.problem,
        )

    # --- Actions ---
    def action_toggle_pause(self) -> None:
        if self.scheduler.is_running:
            self.scheduler.on_background()
            self.show_status(PAUSED_STATUS)
        else:
            self.scheduler.on_foreground()

    # --- Event handlers ---
    def on_mount(self) -> None:
        self._info_label = self.query_one("#info_label", Static)
        self._code_view = self.query_one("#code_view", Static)
        self._install_asyncio_exception_handler()
        self.tracker.start()
        self.scheduler.start()
        # Restarting once the first frame is up must not double the cadence.
        self.call_after_refresh(self.scheduler.start)
        self.set_interval(10.0, self._log_heartbeat)
        logger.info("TUI mounted")

    def on_resize(self, event: events.Resize) -> None:
        self.call_after_refresh(self._refresh_code_view)

    def on_app_blur(self, event: events.AppBlur) -> None:
        logger.info("App lost focus, sampling stopped")
        self.scheduler.on_background()

    def on_app_focus(self, event: events.AppFocus) -> None:
        logger.info("App regained focus, sampling started")
        self.scheduler.on_foreground()

    def on_unmount(self) -> None:
        self.scheduler.stop()
        self.tracker.stop()
        logger.info("TUI shutdown")


# Public entrypoints
def run_tui(tracker: LocationTracker, cfg: AppConfig) -> int:
    """Run the TUI and return an exit code."""
    logger.info("TUI start provider=%s", cfg.provider)
    try:
        set_console_level(logging.WARNING)
    except Exception:
        logger.exception("Failed to set console log level for TUI")
    app = QRcationApp(tracker, display_scale=cfg.display_scale)
    app.run()
    logger.info("TUI exit")
    return 0
