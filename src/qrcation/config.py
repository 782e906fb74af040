"""Configuration persistence for QRcation."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
import math
import os
from pathlib import Path
from typing import Any, Optional

from qrcation.models import FIXTURE_LATITUDE, FIXTURE_LONGITUDE, AuthorizationStatus

logger = logging.getLogger(__name__)

PROVIDERS = ("fixture", "nmea")
AUTHORIZATION_CHOICES = tuple(status.value for status in AuthorizationStatus)


@dataclass(frozen=True)
class AppConfig:
    """Immutable user configuration loaded from disk."""

    provider: str = "fixture"
    nmea_path: Optional[str] = None
    nmea_replay_delay: float = 1.0
    fixture_latitude: float = FIXTURE_LATITUDE
    fixture_longitude: float = FIXTURE_LONGITUDE
    fixture_authorization: str = AuthorizationStatus.AUTHORIZED_WHEN_IN_USE.value
    display_scale: float = 4.0


def get_config_dir(app_name: str = "qrcation") -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    if os.name == "posix" and _is_macos():
        return _ensure_dir(Path.home() / "Library" / "Application Support" / app_name)
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return _ensure_dir(root / app_name)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def load_config() -> AppConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()
    return _config_from_mapping(raw)


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to disk atomically."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    temp_path.write_text(json.dumps(asdict(cfg), indent=2), encoding="utf-8")
    os.replace(temp_path, path)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False


def _get_float(
    raw: dict[str, Any],
    key: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Fetch a finite number, falling back when invalid or out of range."""
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return float(value)


def _get_choice(raw: dict[str, Any], key: str, default: str, choices: tuple) -> str:
    value = raw.get(key, default)
    return value if value in choices else default


def _config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Normalize raw JSON data into an AppConfig."""
    nmea_path = raw.get("nmea_path")
    if nmea_path is not None and (not isinstance(nmea_path, str) or not nmea_path):
        nmea_path = None
    return AppConfig(
        provider=_get_choice(raw, "provider", "fixture", PROVIDERS),
        nmea_path=nmea_path,
        nmea_replay_delay=_get_float(raw, "nmea_replay_delay", 1.0, min_value=0.0),
        fixture_latitude=_get_float(
            raw, "fixture_latitude", FIXTURE_LATITUDE, min_value=-90.0, max_value=90.0
        ),
        fixture_longitude=_get_float(
            raw,
            "fixture_longitude",
            FIXTURE_LONGITUDE,
            min_value=-180.0,
            max_value=180.0,
        ),
        fixture_authorization=_get_choice(
            raw,
            "fixture_authorization",
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE.value,
            AUTHORIZATION_CHOICES,
        ),
        display_scale=_get_float(raw, "display_scale", 4.0, min_value=0.5),
    )
