"""Shift sales report assembly.

``build_shift_report`` turns a payments snapshot, a reporting range and a
shift selector into a ``ShiftReport``: a summary of both shifts plus one
detail section per selected shift. The report is plain data; turning it into
a spreadsheet is the job of ``wash_core.export``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from wash_core.aggregate import ShiftTotals, totals_from_tagged
from wash_core.config import ReportSettings, resolve_settings
from wash_core.records import RecordsInput, as_payments_frame, paid_only
from wash_core.shifts import DateLike, Shift, ShiftMode, tag_shifts, validate_range

logger = logging.getLogger(__name__)

LINE_ITEM_COLUMNS = [
    "transaction_id",
    "timestamp",
    "customer_name",
    "service_name",
    "price",
    "cashier_display_name",
    "payment_method",
]

MISSING_PAYMENT_METHOD = "N/A"


@dataclass(frozen=True)
class ReportSummary:
    """Summary section of a shift report."""

    start_date: date
    end_date: date
    shift1_total: float
    shift1_count: int
    shift2_total: float
    shift2_count: int
    combined_total: float
    skipped_records: int = 0

    @classmethod
    def from_totals(
        cls, start_date: date, end_date: date, totals: ShiftTotals, skipped_records: int = 0
    ) -> ReportSummary:
        return cls(
            start_date=start_date,
            end_date=end_date,
            shift1_total=totals.shift1_total,
            shift1_count=totals.shift1_count,
            shift2_total=totals.shift2_total,
            shift2_count=totals.shift2_count,
            combined_total=totals.combined_total,
            skipped_records=skipped_records,
        )


@dataclass
class ReportSection:
    """Detail section listing the payments of one shift.

    ``items`` only ever holds real payments, so its columns and dtypes are
    the same whether or not the shift had sales. An empty section carries
    its placeholder message in ``placeholder`` instead of a fake row; sinks
    render that message when ``is_empty`` is true (see
    ``wash_core.export.section_frame``).

    Attributes:
        shift: Shift the section covers.
        label: Display label, e.g. "Shift 1".
        items: Line items (``LINE_ITEM_COLUMNS``) in original record order.
        placeholder: Message shown instead of the items when there are none;
            None when the section has items.
    """

    shift: Shift
    label: str
    items: pd.DataFrame
    placeholder: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.items.empty


@dataclass
class ShiftReport:
    """Structured shift sales report, ready for tabular export."""

    summary: ReportSummary
    mode: ShiftMode
    sections: list[ReportSection] = field(default_factory=list)

    def section(self, shift: Shift) -> ReportSection | None:
        """Return the detail section for ``shift``, or None if not emitted."""
        for section in self.sections:
            if section.shift is shift:
                return section
        return None


def placeholder_message(shift: Shift) -> str:
    return f"No sales records for {shift.label} in this period."


def build_shift_report(
    records: RecordsInput,
    report_start: DateLike,
    report_end: DateLike,
    mode: ShiftMode | str = ShiftMode.ALL,
    settings: ReportSettings | None = None,
) -> ShiftReport:
    """Build the shift sales report for a date range.

    The range is validated before any record is looked at. The summary
    always covers both shifts; ``mode`` only decides which detail sections
    are emitted (``all``: both, ``shift1``/``shift2``: the matching one).

    Args:
        records: Payments snapshot (frame, batch, records or store documents).
        report_start: First calendar day (inclusive).
        report_end: Last calendar day (inclusive).
        mode: Shift selector.
        settings: Report settings.

    Returns:
        ShiftReport.

    Raises:
        InvalidRange: If either date is missing or invalid, or the start date
            is after the end date.
        ValueError: If ``mode`` is not a known shift selector.
    """
    start, end = validate_range(report_start, report_end)
    mode = ShiftMode.parse(mode)
    settings = resolve_settings(settings)

    batch = as_payments_frame(records)
    tagged = tag_shifts(paid_only(batch.frame), start, end, settings)
    totals = totals_from_tagged(tagged)

    sections = []
    for shift in mode.shifts:
        items = _line_items(tagged[tagged["shift"] == shift.value])
        sections.append(
            ReportSection(
                shift=shift,
                label=shift.label,
                items=items,
                placeholder=placeholder_message(shift) if items.empty else None,
            )
        )

    logger.info(
        "Built shift report %s to %s (%s): shift1=%d, shift2=%d, skipped=%d",
        start,
        end,
        mode.value,
        totals.shift1_count,
        totals.shift2_count,
        batch.skipped,
    )
    return ShiftReport(
        summary=ReportSummary.from_totals(start, end, totals, batch.skipped),
        mode=mode,
        sections=sections,
    )


def _line_items(rows: pd.DataFrame) -> pd.DataFrame:
    cashier = rows["cashier_full_name"].where(
        rows["cashier_full_name"].str.strip() != "", rows["cashier_name"]
    )
    method = rows["payment_method"].where(
        rows["payment_method"].notna() & (rows["payment_method"] != ""), MISSING_PAYMENT_METHOD
    )
    items = pd.DataFrame(
        {
            "transaction_id": rows["id"],
            "timestamp": rows["local_time"],
            "customer_name": rows["customer_name"],
            "service_name": rows["service_name"],
            "price": rows["price"],
            "cashier_display_name": cashier,
            "payment_method": method,
        },
        columns=LINE_ITEM_COLUMNS,
    )
    return items.reset_index(drop=True)
