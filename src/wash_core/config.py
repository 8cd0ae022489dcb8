"""Settings for the car-wash sales engine.

This module provides a single, simple settings class used by every
component (shifts, aggregation, commissions, report, export). The engine
itself never reads the environment; ``ReportSettings.from_env`` is the hook
the surrounding application uses to build settings from process variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from wash_core.exceptions import ConfigError

# Business timezone used for every calendar-day decision
DEFAULT_TIMEZONE = "Asia/Manila"

# Shift 1 runs [08:00, 20:00); Shift 2 runs [20:00, 08:00 next day)
SHIFT1_START_HOUR = 8
SHIFT2_START_HOUR = 20

# Size of the "most availed services" and "top customers" lists
DEFAULT_TOP_N = 3

CURRENCY_SYMBOL = "₱"


@dataclass(frozen=True)
class ReportSettings:
    """Settings shared by all report computations.

    Attributes:
        timezone: IANA timezone name of the business. The reporting range,
            the shift boundaries and the commission date filter are all
            evaluated on local wall-clock time in this zone.
        shift1_start_hour: Hour (0-23) at which Shift 1 starts.
        shift2_start_hour: Hour (0-23) at which Shift 2 starts. Shift 1 ends
            here and Shift 2 ends at ``shift1_start_hour`` the next day.
        top_n: Default size of ranked frequency lists.
        currency_symbol: Prefix used when formatting money for export.

    Examples:
        >>> settings = ReportSettings(timezone="UTC")
        >>> settings.shift1_start_hour, settings.shift2_start_hour
        (8, 20)
    """

    timezone: str = DEFAULT_TIMEZONE
    shift1_start_hour: int = SHIFT1_START_HOUR
    shift2_start_hour: int = SHIFT2_START_HOUR
    top_n: int = DEFAULT_TOP_N
    currency_symbol: str = CURRENCY_SYMBOL

    def __post_init__(self) -> None:
        if not 0 <= self.shift1_start_hour < self.shift2_start_hour <= 23:
            raise ConfigError(
                f"Invalid shift hours: shift1_start_hour={self.shift1_start_hour}, "
                f"shift2_start_hour={self.shift2_start_hour}. "
                "Expected 0 <= shift1_start_hour < shift2_start_hour <= 23."
            )
        if self.top_n < 1:
            raise ConfigError(f"top_n must be at least 1, got {self.top_n}")
        _load_zone(self.timezone)

    @property
    def tz(self) -> ZoneInfo:
        """Resolved ``ZoneInfo`` for the business timezone."""
        return _load_zone(self.timezone)

    @classmethod
    def from_env(cls) -> ReportSettings:
        """Create settings from ``WASH_*`` environment variables.

        Reads:
            WASH_TIMEZONE: IANA timezone name.
            WASH_SHIFT1_START: Shift 1 start hour.
            WASH_SHIFT2_START: Shift 2 start hour.
            WASH_TOP_N: Default ranking size.

        Unset variables fall back to the defaults.

        Returns:
            ReportSettings instance.

        Raises:
            ConfigError: If a variable is set but cannot be parsed, or the
                resulting settings are invalid.
        """
        return cls(
            timezone=os.environ.get("WASH_TIMEZONE", DEFAULT_TIMEZONE).strip(),
            shift1_start_hour=_int_from_env("WASH_SHIFT1_START", SHIFT1_START_HOUR),
            shift2_start_hour=_int_from_env("WASH_SHIFT2_START", SHIFT2_START_HOUR),
            top_n=_int_from_env("WASH_TOP_N", DEFAULT_TOP_N),
        )


def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ConfigError(f"Unknown timezone '{name}'") from e


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip().strip('"').strip("'"))
    except ValueError as e:
        raise ConfigError(f"Environment variable {name} must be an integer, got {raw!r}") from e


def resolve_settings(settings: ReportSettings | None) -> ReportSettings:
    """Return ``settings`` or the default settings when None."""
    return settings if settings is not None else ReportSettings()
