"""
Configuration - Environment-driven settings

Reads settings from environment variables, optionally loaded from a .env
file. TEST_MODE swaps the configured database for in-memory SQLite.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Callable, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz
from dotenv import load_dotenv

from srs_core.fsrs.constants import (
    DEFAULT_DESIRED_RETENTION,
    DEFAULT_MAXIMUM_INTERVAL,
    SchedulerParameters,
)


T = TypeVar("T")

DEFAULT_DATABASE_URL = "sqlite:///logs/srs.sqlite"
TEST_DATABASE_URL = "sqlite://"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    database_url: str = DEFAULT_DATABASE_URL
    test_mode: bool = False
    desired_retention: float = DEFAULT_DESIRED_RETENTION
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL
    enable_fuzz: bool = True
    log_level: int = logging.INFO
    log_json: bool = False
    timezone: Optional[str] = None  # IANA name; None means the machine zone

    @property
    def effective_database_url(self) -> str:
        """Database actually used: in-memory SQLite in test mode."""
        return TEST_DATABASE_URL if self.test_mode else self.database_url

    def zone(self) -> tzinfo:
        """Zone that defines the study day, with its DST rules."""
        if self.timezone:
            return ZoneInfo(self.timezone)
        return tz.tzlocal()

    def scheduler_parameters(self) -> SchedulerParameters:
        """Build the scheduler parameter set (default FSRS-5 weights)."""
        return SchedulerParameters(
            desired_retention=self.desired_retention,
            maximum_interval=self.maximum_interval,
            enable_fuzz=self.enable_fuzz,
        )


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _parse_log_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {raw!r}")
    return level


def _parse_timezone(raw: str) -> str:
    name = raw.strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {raw!r}") from exc
    return name


def _env(name: str, parse: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {exc}") from exc


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return _env("TEST_MODE", _parse_bool, False)


def load_settings(dotenv: bool = True) -> Settings:
    """
    Load settings from the environment.

    Variables:
        DATABASE_URL: SQLAlchemy URL (default: sqlite:///logs/srs.sqlite)
        TEST_MODE: "true" to use in-memory SQLite
        SRS_DESIRED_RETENTION: Target recall probability (default: 0.9)
        SRS_MAXIMUM_INTERVAL: Maximum interval in days (default: 36500)
        SRS_ENABLE_FUZZ: Spread review intervals (default: true)
        SRS_LOG_LEVEL: Logging level name (default: INFO)
        SRS_LOG_JSON: JSON log output (default: false)
        SRS_TIMEZONE: IANA zone for study days (default: machine zone)

    Args:
        dotenv: Load a .env file first (existing variables win)

    Returns:
        Settings instance

    Raises:
        ValueError: a variable is set to an unparseable value
    """
    if dotenv:
        load_dotenv()

    return Settings(
        database_url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
        test_mode=is_test_mode(),
        desired_retention=_env("SRS_DESIRED_RETENTION", float, DEFAULT_DESIRED_RETENTION),
        maximum_interval=_env("SRS_MAXIMUM_INTERVAL", int, DEFAULT_MAXIMUM_INTERVAL),
        enable_fuzz=_env("SRS_ENABLE_FUZZ", _parse_bool, True),
        log_level=_env("SRS_LOG_LEVEL", _parse_log_level, logging.INFO),
        log_json=_env("SRS_LOG_JSON", _parse_bool, False),
        timezone=_env("SRS_TIMEZONE", _parse_timezone, None),
    )
