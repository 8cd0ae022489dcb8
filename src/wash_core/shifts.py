"""Time partitioning of payments into reporting shifts.

A business day has two fixed shifts evaluated on local wall-clock time in the
configured business timezone:

- Shift 1: ``[day 08:00, day 20:00)``
- Shift 2: ``[day 20:00, day+1 08:00)``

Boundaries are always taken from the payment's own calendar day, so a sale at
02:00 belongs to the previous day's Shift 2 while still counting as part of
its own calendar day for the reporting-range test.

``classify_shift`` is the scalar reference implementation; ``tag_shifts`` is
the vectorized form used by the aggregation and report modules.

Examples:
    >>> from wash_core.config import ReportSettings
    >>> utc = ReportSettings(timezone="UTC")
    >>> classify_shift(1717977600, "2024-06-10", "2024-06-10", settings=utc)  # 00:00
    <Shift.SHIFT2: 'shift2'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Union

import numpy as np
import pandas as pd

from wash_core.config import ReportSettings, resolve_settings
from wash_core.exceptions import InvalidRange
from wash_core.records import require_epoch_seconds

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]


class Shift(str, Enum):
    """Shift a payment is attributed to."""

    NONE = "none"
    SHIFT1 = "shift1"
    SHIFT2 = "shift2"

    @property
    def label(self) -> str:
        return SHIFT_LABELS.get(self, "")


SHIFT_LABELS = {Shift.SHIFT1: "Shift 1", Shift.SHIFT2: "Shift 2"}


class ShiftMode(str, Enum):
    """Shift selector for reports: both shifts or only one of them."""

    ALL = "all"
    SHIFT1 = "shift1"
    SHIFT2 = "shift2"

    @classmethod
    def parse(cls, value: ShiftMode | str) -> ShiftMode:
        """Return the mode for ``"all"``, ``"shift1"`` or ``"shift2"``.

        Raises:
            ValueError: If the value names no known mode.
        """
        if isinstance(value, ShiftMode):
            return value
        raw = value.value if isinstance(value, Enum) else str(value)
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid shift mode '{value}'. Must be 'all', 'shift1' or 'shift2'."
            ) from None

    @property
    def shifts(self) -> tuple[Shift, ...]:
        """Shifts selected by this mode, in report order."""
        if self is ShiftMode.ALL:
            return (Shift.SHIFT1, Shift.SHIFT2)
        return (Shift(self.value),)

    def includes(self, shift: Shift) -> bool:
        return shift in self.shifts


@dataclass(frozen=True)
class ShiftWindow:
    """Half-open interval ``[start, end)`` of one shift on one day.

    Attributes:
        shift: Shift this window belongs to.
        start: Inclusive start, timezone-aware.
        end: Exclusive end, timezone-aware.
    """

    shift: Shift
    start: datetime
    end: datetime

    def contains(self, instant: float | datetime) -> bool:
        """Check whether an instant (epoch seconds or aware datetime) is inside."""
        if not isinstance(instant, datetime):
            instant = datetime.fromtimestamp(float(instant), tz=self.start.tzinfo)
        return self.start <= instant < self.end


def parse_report_date(value: DateLike, name: str = "date") -> date:
    """Parse one end of a reporting range.

    Args:
        value: ``date``, ``datetime`` (its calendar date is used) or a
            ``YYYY-MM-DD`` string.
        name: Name used in error messages.

    Returns:
        Calendar date.

    Raises:
        InvalidRange: If the value is missing or not a valid date.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRange(f"Report {name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRange(f"Report {name} must be in YYYY-MM-DD format, got {value!r}") from None


def validate_range(report_start: DateLike, report_end: DateLike) -> tuple[date, date]:
    """Validate a reporting range and return it as calendar dates.

    Raises:
        InvalidRange: If either end is missing or invalid, or the start date
            is after the end date.

    Examples:
        >>> validate_range("2024-06-05", "2024-06-10")
        (datetime.date(2024, 6, 5), datetime.date(2024, 6, 10))
    """
    start = parse_report_date(report_start, "start date")
    end = parse_report_date(report_end, "end date")
    if start > end:
        raise InvalidRange(f"Report start date {start} is after end date {end}")
    return start, end


def to_local(created_at: float, settings: ReportSettings | None = None) -> datetime:
    """Convert epoch seconds to an aware datetime in the business timezone.

    Raises:
        MalformedRecord: If ``created_at`` is not a representable instant.
    """
    settings = resolve_settings(settings)
    return datetime.fromtimestamp(require_epoch_seconds(created_at), tz=settings.tz)


def shift_of_local_time(local: datetime, settings: ReportSettings | None = None) -> Shift:
    """Shift for a local wall-clock time, ignoring any reporting range."""
    settings = resolve_settings(settings)
    if settings.shift1_start_hour <= local.hour < settings.shift2_start_hour:
        return Shift.SHIFT1
    return Shift.SHIFT2


def classify_shift(
    created_at: float,
    report_start: DateLike,
    report_end: DateLike,
    mode: ShiftMode | str = ShiftMode.ALL,
    settings: ReportSettings | None = None,
) -> Shift:
    """Classify a payment instant into a shift within a reporting range.

    Args:
        created_at: Payment instant in epoch seconds.
        report_start: First calendar day of the report (inclusive).
        report_end: Last calendar day of the report (inclusive).
        mode: Shift selector. A payment in the unselected shift yields
            ``Shift.NONE``.
        settings: Report settings (timezone and shift hours).

    Returns:
        ``Shift.NONE`` when the payment's local calendar day is outside the
        range (or its shift is not selected), otherwise the payment's shift.

    Raises:
        InvalidRange: If the reporting range is invalid.
        MalformedRecord: If ``created_at`` is not a representable instant.
    """
    start, end = validate_range(report_start, report_end)
    mode = ShiftMode.parse(mode)
    settings = resolve_settings(settings)

    local = to_local(created_at, settings)
    if not start <= local.date() <= end:
        return Shift.NONE

    shift = shift_of_local_time(local, settings)
    return shift if mode.includes(shift) else Shift.NONE


def shift_window(day: date, shift: Shift, settings: ReportSettings | None = None) -> ShiftWindow:
    """Return the half-open window of ``shift`` anchored on ``day``.

    Raises:
        ValueError: If ``shift`` is ``Shift.NONE``.
    """
    settings = resolve_settings(settings)
    tz = settings.tz
    shift1_start = time(settings.shift1_start_hour)
    shift2_start = time(settings.shift2_start_hour)

    if shift is Shift.SHIFT1:
        return ShiftWindow(
            shift=shift,
            start=datetime.combine(day, shift1_start, tzinfo=tz),
            end=datetime.combine(day, shift2_start, tzinfo=tz),
        )
    if shift is Shift.SHIFT2:
        return ShiftWindow(
            shift=shift,
            start=datetime.combine(day, shift2_start, tzinfo=tz),
            end=datetime.combine(day + timedelta(days=1), shift1_start, tzinfo=tz),
        )
    raise ValueError("Shift.NONE has no window")


def shift_operating_day(created_at: float, settings: ReportSettings | None = None) -> date:
    """Calendar day whose shift a payment belongs to.

    Payments before the Shift 1 start hour belong to the previous day's
    Shift 2, so their operating day is the day before their calendar day.
    """
    settings = resolve_settings(settings)
    local = to_local(created_at, settings)
    if local.hour < settings.shift1_start_hour:
        return local.date() - timedelta(days=1)
    return local.date()


def local_times(frame: pd.DataFrame, settings: ReportSettings | None = None) -> pd.Series:
    """Local, timezone-aware timestamps for the ``created_at`` column."""
    settings = resolve_settings(settings)
    return pd.to_datetime(frame["created_at"], unit="s", utc=True).dt.tz_convert(
        settings.timezone
    )


def local_days(frame: pd.DataFrame, settings: ReportSettings | None = None) -> pd.Series:
    """Local calendar day (as midnight timestamps) of each payment."""
    return local_times(frame, settings).dt.tz_localize(None).dt.normalize()


def tag_shifts(
    frame: pd.DataFrame,
    report_start: DateLike,
    report_end: DateLike,
    settings: ReportSettings | None = None,
) -> pd.DataFrame:
    """Vectorized shift classification of a payments frame.

    Args:
        frame: Normalized payments frame (needs ``created_at``).
        report_start: First calendar day of the report (inclusive).
        report_end: Last calendar day of the report (inclusive).
        settings: Report settings.

    Returns:
        Copy of ``frame`` with added columns:
        - ``local_time``: aware timestamp in the business timezone
        - ``in_range``: whether the local calendar day is inside the range
        - ``shift``: ``"none"``, ``"shift1"`` or ``"shift2"``

    Raises:
        InvalidRange: If the reporting range is invalid.
    """
    start, end = validate_range(report_start, report_end)
    settings = resolve_settings(settings)

    df = frame.copy()
    df["local_time"] = local_times(df, settings)
    day = df["local_time"].dt.tz_localize(None).dt.normalize()
    df["in_range"] = (day >= pd.Timestamp(start)) & (day <= pd.Timestamp(end))

    hour = df["local_time"].dt.hour
    is_shift1 = (hour >= settings.shift1_start_hour) & (hour < settings.shift2_start_hour)
    df["shift"] = np.where(
        ~df["in_range"],
        Shift.NONE.value,
        np.where(is_shift1, Shift.SHIFT1.value, Shift.SHIFT2.value),
    )

    logger.debug(
        "Tagged %d payments for %s to %s: %d in range",
        len(df),
        start,
        end,
        int(df["in_range"].sum()),
    )
    return df
