"""Sales aggregation over paid payments.

Four independent dimensions, each a single pass over the paid records:

- overall total of ``price``
- service frequency (count per distinct ``service_name``)
- customer frequency (count per distinct ``customer_name``)
- Shift 1 / Shift 2 totals and counts within a reporting range

Frequency tables keep the order in which each name was first seen; ranking
(``wash_core.ranking``) sorts them stably so equal counts stay in that
order. Blank names are never counted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from wash_core.config import ReportSettings
from wash_core.records import RecordsInput, as_payments_frame, paid_only
from wash_core.shifts import DateLike, Shift, tag_shifts, validate_range

logger = logging.getLogger(__name__)

FREQUENCY_COLUMNS = ["name", "count"]


@dataclass(frozen=True)
class ShiftTotals:
    """Sales totals and transaction counts per shift."""

    shift1_total: float = 0.0
    shift1_count: int = 0
    shift2_total: float = 0.0
    shift2_count: int = 0

    @property
    def combined_total(self) -> float:
        return self.shift1_total + self.shift2_total

    @property
    def combined_count(self) -> int:
        return self.shift1_count + self.shift2_count

    def total_for(self, shift: Shift) -> float:
        if shift is Shift.SHIFT1:
            return self.shift1_total
        if shift is Shift.SHIFT2:
            return self.shift2_total
        return 0.0

    def count_for(self, shift: Shift) -> int:
        if shift is Shift.SHIFT1:
            return self.shift1_count
        if shift is Shift.SHIFT2:
            return self.shift2_count
        return 0


@dataclass
class SalesAggregate:
    """All sales dimensions for one reporting range.

    Attributes:
        overall_total: Sum of prices of the paid payments in range.
        service_frequency: DataFrame with columns ``name``, ``count``.
        customer_frequency: DataFrame with columns ``name``, ``count``.
        shift_totals: Per-shift totals and counts.
        skipped_records: Malformed records dropped before aggregation.
    """

    overall_total: float
    service_frequency: pd.DataFrame
    customer_frequency: pd.DataFrame
    shift_totals: ShiftTotals
    skipped_records: int = 0


def overall_total(records: RecordsInput) -> float:
    """Sum of ``price`` over paid payments.

    Examples:
        >>> overall_total([])
        0.0
    """
    frame = paid_only(as_payments_frame(records).frame)
    return float(frame["price"].sum())


def service_frequency(records: RecordsInput) -> pd.DataFrame:
    """Count paid payments per service name, in first-occurrence order."""
    return _frequency(paid_only(as_payments_frame(records).frame), "service_name")


def customer_frequency(records: RecordsInput) -> pd.DataFrame:
    """Count paid payments per customer name, in first-occurrence order."""
    return _frequency(paid_only(as_payments_frame(records).frame), "customer_name")


def shift_totals(
    records: RecordsInput,
    report_start: DateLike,
    report_end: DateLike,
    settings: ReportSettings | None = None,
) -> ShiftTotals:
    """Totals and counts of paid payments per shift within a range.

    Raises:
        InvalidRange: If the reporting range is invalid.
    """
    validate_range(report_start, report_end)
    frame = paid_only(as_payments_frame(records).frame)
    return totals_from_tagged(tag_shifts(frame, report_start, report_end, settings))


def totals_from_tagged(tagged: pd.DataFrame) -> ShiftTotals:
    """Fold a frame produced by ``tag_shifts`` into per-shift totals."""
    shift1 = tagged.loc[tagged["shift"] == Shift.SHIFT1.value, "price"]
    shift2 = tagged.loc[tagged["shift"] == Shift.SHIFT2.value, "price"]
    return ShiftTotals(
        shift1_total=float(shift1.sum()),
        shift1_count=int(len(shift1)),
        shift2_total=float(shift2.sum()),
        shift2_count=int(len(shift2)),
    )


def aggregate_sales(
    records: RecordsInput,
    report_start: DateLike,
    report_end: DateLike,
    settings: ReportSettings | None = None,
) -> SalesAggregate:
    """Compute every sales dimension for the paid payments in a range.

    Args:
        records: Payments (frame, batch, records or store documents).
        report_start: First calendar day (inclusive).
        report_end: Last calendar day (inclusive).
        settings: Report settings.

    Returns:
        SalesAggregate.

    Raises:
        InvalidRange: If the reporting range is invalid.
    """
    validate_range(report_start, report_end)
    batch = as_payments_frame(records)
    tagged = tag_shifts(paid_only(batch.frame), report_start, report_end, settings)
    in_range = tagged[tagged["in_range"]]

    result = SalesAggregate(
        overall_total=float(in_range["price"].sum()),
        service_frequency=_frequency(in_range, "service_name"),
        customer_frequency=_frequency(in_range, "customer_name"),
        shift_totals=totals_from_tagged(tagged),
        skipped_records=batch.skipped,
    )
    logger.debug(
        "Aggregated %d paid payments in range: total=%.2f, %d services, %d customers",
        len(in_range),
        result.overall_total,
        len(result.service_frequency),
        len(result.customer_frequency),
    )
    return result


def _frequency(frame: pd.DataFrame, column: str) -> pd.DataFrame:
    names = frame[column]
    names = names[names.notna() & (names.astype(str).str.strip() != "")]
    if names.empty:
        return pd.DataFrame(
            {"name": pd.Series(dtype=object), "count": pd.Series(dtype="int64")}
        )

    # sort=False keeps groups in first-occurrence order
    counts = names.groupby(names, sort=False).size()
    return pd.DataFrame({"name": counts.index.astype(object), "count": counts.to_numpy()})
