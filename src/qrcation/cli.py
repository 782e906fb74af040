"""Command-line interface for QRcation."""

from __future__ import annotations

import argparse
from dataclasses import replace
import locale
import logging
import math
import sys
import threading
from types import TracebackType
from typing import Iterable, Optional, Tuple

from qrcation.config import (
    AUTHORIZATION_CHOICES,
    PROVIDERS,
    AppConfig,
    load_config,
    save_config,
)
from qrcation.location import LocationTracker
from qrcation.logging_setup import init_logging
from qrcation.models import Location, Sample, utc_now
from qrcation.payload import format_payload
from qrcation.providers import build_provider

logger = logging.getLogger(__name__)


def _degrees(value: str, limit: float) -> float:
    try:
        degrees = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if not math.isfinite(degrees) or abs(degrees) > limit:
        raise argparse.ArgumentTypeError(
            f"{value} is outside -{limit:g}..{limit:g}"
        )
    return degrees


def _latitude(value: str) -> float:
    return _degrees(value, 90.0)


def _longitude(value: str) -> float:
    return _degrees(value, 180.0)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="qrcation", description="Show location and time as a QR code"
    )
    parser.add_argument("--provider", choices=PROVIDERS, default=None)
    parser.add_argument("--nmea", default=None, help="NMEA log file or device")
    parser.add_argument(
        "--replay-delay",
        type=float,
        default=None,
        help="Seconds to wait between NMEA lines",
    )
    parser.add_argument(
        "--lat", type=_latitude, default=None, help="Fixture latitude"
    )
    parser.add_argument(
        "--lon", type=_longitude, default=None, help="Fixture longitude"
    )
    parser.add_argument(
        "--authorization",
        choices=AUTHORIZATION_CHOICES,
        default=None,
        help="Authorization state reported by the fixture provider",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print the payload for the fixture location and exit",
    )
    return parser


def apply_args(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Overlay command-line values on the stored configuration."""
    changes: dict[str, object] = {}
    if args.nmea is not None:
        changes["nmea_path"] = args.nmea
        changes["provider"] = "nmea"
    if args.provider is not None:
        changes["provider"] = args.provider
    if args.replay_delay is not None:
        changes["nmea_replay_delay"] = max(0.0, args.replay_delay)
    if args.lat is not None:
        changes["fixture_latitude"] = args.lat
    if args.lon is not None:
        changes["fixture_longitude"] = args.lon
    if args.authorization is not None:
        changes["fixture_authorization"] = args.authorization
    return replace(cfg, **changes) if changes else cfg


def _print_once(cfg: AppConfig) -> int:
    location = Location(cfg.fixture_latitude, cfg.fixture_longitude)
    payload = format_payload(Sample(location=location, timestamp=utc_now()))
    print(payload.encode_text)
    print(payload.display_text)
    return 0


def _run_tui(tracker: LocationTracker, cfg: AppConfig) -> int:
    try:
        from qrcation.tui import run_tui
    except (ImportError, RuntimeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return run_tui(tracker, cfg)


def _use_system_locale() -> None:
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error:
        logger.warning("Could not apply the system time locale")


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    init_logging()
    logger.info("App start")

    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))

    sys.excepthook = excepthook

    def thread_hook(args: threading.ExceptHookArgs) -> None:
        exc_value = args.exc_value or RuntimeError("unknown")
        exc_info: Tuple[type[BaseException], BaseException, Optional[TracebackType]] = (
            args.exc_type,
            exc_value,
            args.exc_traceback,
        )
        thread_name = args.thread.name if args.thread else "thread"
        logger.exception("Thread exception in %s", thread_name, exc_info=exc_info)

    threading.excepthook = thread_hook

    args = build_parser().parse_args(list(argv) if argv is not None else None)
    cfg = apply_args(load_config(), args)
    _use_system_locale()

    if args.once:
        return _print_once(cfg)

    try:
        provider = build_provider(cfg)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    exit_code = _run_tui(LocationTracker(provider), cfg)
    try:
        save_config(cfg)
    except OSError:
        logger.exception("Failed to save config")
    logger.info("App exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
