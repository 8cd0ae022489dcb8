"""Tabular export of shift reports.

``report_to_sheets`` is the pure conversion from a ``ShiftReport`` to ordered
sheets (one DataFrame per sheet); ``write_report`` materializes them as an
Excel workbook through pandas and xlsxwriter.

Workbook layout:
    Shift_Sales_Report_<start>_to_<end>.xlsx
    ├── Summary            # per-shift counts and totals, plus combined total
    ├── Shift 1 Details    # only when the report selects Shift 1
    └── Shift 2 Details    # only when the report selects Shift 2
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from wash_core.config import ReportSettings, resolve_settings
from wash_core.report import ReportSection, ShiftReport
from wash_core.shifts import Shift

logger = logging.getLogger(__name__)

SUMMARY_SHEET = "Summary"
SUMMARY_TITLE = "Shift Sales Report Summary"

DETAIL_HEADERS = {
    "transaction_id": "Payment ID",
    "timestamp": "Date & Time",
    "customer_name": "Customer Name",
    "service_name": "Service Name",
    "price": "Price",
    "cashier_display_name": "Cashier",
    "payment_method": "Payment Method",
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_peso(value: float, settings: ReportSettings | None = None) -> str:
    """Format an amount with the currency symbol and two decimals.

    Examples:
        >>> format_peso(1234.5)
        '₱1,234.50'
    """
    return f"{resolve_settings(settings).currency_symbol}{value:,.2f}"


def shift_heading(shift: Shift, settings: ReportSettings | None = None) -> str:
    """Summary row label, e.g. ``"Shift 1 (8 AM - 8 PM)"``."""
    settings = resolve_settings(settings)
    if shift is Shift.SHIFT1:
        start, end = settings.shift1_start_hour, settings.shift2_start_hour
    else:
        start, end = settings.shift2_start_hour, settings.shift1_start_hour
    return f"{shift.label} ({_clock(start)} - {_clock(end)})"


def sheet_name(section: ReportSection) -> str:
    return f"{section.label} Details"


def report_filename(report: ShiftReport) -> str:
    """Deterministic workbook name derived from the report's date range."""
    summary = report.summary
    return (
        f"Shift_Sales_Report_{summary.start_date.isoformat()}"
        f"_to_{summary.end_date.isoformat()}.xlsx"
    )


def summary_frame(report: ShiftReport, settings: ReportSettings | None = None) -> pd.DataFrame:
    """Summary sheet: one row per shift plus the combined total."""
    summary = report.summary
    return pd.DataFrame(
        {
            "Shift": [
                shift_heading(Shift.SHIFT1, settings),
                shift_heading(Shift.SHIFT2, settings),
                "Total Sales",
            ],
            "Transactions": [
                summary.shift1_count,
                summary.shift2_count,
                summary.shift1_count + summary.shift2_count,
            ],
            "Total Sales": [
                format_peso(summary.shift1_total, settings),
                format_peso(summary.shift2_total, settings),
                format_peso(summary.combined_total, settings),
            ],
        }
    )


def section_frame(section: ReportSection) -> pd.DataFrame:
    """Detail sheet for a section; a single placeholder cell when empty."""
    if section.is_empty:
        return pd.DataFrame({"Message": [section.placeholder or ""]})

    items = section.items.copy()
    items["timestamp"] = items["timestamp"].dt.strftime(TIMESTAMP_FORMAT)
    return items.rename(columns=DETAIL_HEADERS)


def report_to_sheets(
    report: ShiftReport, settings: ReportSettings | None = None
) -> dict[str, pd.DataFrame]:
    """Convert a report into ordered sheets keyed by sheet name."""
    sheets = {SUMMARY_SHEET: summary_frame(report, settings)}
    for section in report.sections:
        sheets[sheet_name(section)] = section_frame(section)
    return sheets


def write_report(
    report: ShiftReport,
    output_dir: str | Path,
    settings: ReportSettings | None = None,
) -> Path:
    """Write the report as an Excel workbook.

    Args:
        report: Report built by ``build_shift_report``.
        output_dir: Directory to write into (created if missing).
        settings: Report settings (currency and shift labels).

    Returns:
        Path of the written workbook.
    """
    if isinstance(output_dir, str):
        output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / report_filename(report)

    summary = report.summary
    date_range = (
        f"Date Range: {summary.start_date.isoformat()} to {summary.end_date.isoformat()}"
    )

    with pd.ExcelWriter(output_path, engine="xlsxwriter") as xw:
        for name, frame in report_to_sheets(report, settings).items():
            if name == SUMMARY_SHEET:
                frame.to_excel(xw, sheet_name=name, index=False, startrow=3)
                ws = xw.sheets[name]
                ws.write(0, 0, SUMMARY_TITLE)
                ws.write(1, 0, date_range)
            else:
                frame.to_excel(xw, sheet_name=name, index=False)

    logger.info("Wrote shift report to %s", output_path)
    return output_path


def _clock(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display} {suffix}"
