"""Configuration management for Daymark."""

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .core.countdowns import DEFAULT_COLOR
from .core.daymath import local_timezone
from .core.tracking import DEFAULT_EMOJI, DEFAULT_WEEKLY_GOAL

logger = logging.getLogger(__name__)

DAYMARK_HOME = Path(os.environ.get("DAYMARK_HOME", Path.home() / "daymark"))
CONFIG_FILE = DAYMARK_HOME / "config" / "daymark.conf"
DATA_DIR = DAYMARK_HOME / "data"
TIMER_FILE = DAYMARK_HOME / "state" / "active_timer.json"


@dataclass
class Config:
    """Daymark configuration."""

    timezone: str = "local"
    data_dir: str = ""
    # Hosted PostgREST/Supabase backend; local JSON files when empty
    rest_url: str = ""
    rest_api_key: str = ""
    default_color: str = DEFAULT_COLOR
    default_emoji: str = DEFAULT_EMOJI
    default_weekly_goal: int = DEFAULT_WEEKLY_GOAL
    midnight_buffer_seconds: int = 5
    refresh_interval_minutes: int = 60

    def resolve_timezone(self) -> tzinfo:
        """Resolve the configured timezone; "local" means the machine's zone."""
        name = (self.timezone or "local").strip()
        if name.lower() in {"local", "system"}:
            return local_timezone()
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {name!r}, falling back to local time")
            return local_timezone()


def _strip_value(value: str) -> str:
    """Handle quoted values with inline comments: "value" # comment."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments (colors like #0ea5e9 must be quoted)
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, using {default}")
        return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from daymark.conf file."""
    config = Config()
    config_file = path or CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "data_dir":
                config.data_dir = value
            case "rest_url":
                config.rest_url = value
            case "rest_api_key":
                config.rest_api_key = value
            case "default_color":
                config.default_color = value
            case "default_emoji":
                config.default_emoji = value
            case "default_weekly_goal":
                config.default_weekly_goal = _parse_int(key, value, config.default_weekly_goal)
            case "midnight_buffer_seconds":
                config.midnight_buffer_seconds = _parse_int(key, value, config.midnight_buffer_seconds)
            case "refresh_interval_minutes":
                config.refresh_interval_minutes = _parse_int(key, value, config.refresh_interval_minutes)
            case _:
                logger.debug(f"Ignoring unknown config key {key!r}")

    return config
