"""Example: Shift sales report from a payments snapshot

This example loads payment documents exported from the record store (a JSON
list of objects with camelCase keys such as ``customerName``, ``createdAt``
and ``employees``), builds the shift sales report for a date range, prints
the summary and the commission overview, and writes the Excel workbook.

Usage:
    python examples/shift_report.py payments.json --start 2024-06-01 --end 2024-06-07
    python examples/shift_report.py payments.json --start 2024-06-10 --end 2024-06-10 \
        --shift shift2 -o reports

Settings come from the WASH_TIMEZONE, WASH_SHIFT1_START, WASH_SHIFT2_START
and WASH_TOP_N environment variables (defaults: Asia/Manila, 8, 20, 3).
"""

import argparse
import json
import logging
from pathlib import Path

from wash_core import ReportSettings, WashAPIError, build_shift_report, records_to_frame
from wash_core.dashboard import build_dashboard, commission_overview
from wash_core.export import format_peso, shift_heading, write_report
from wash_core.shifts import Shift


def main() -> None:
    """Build and export a shift sales report from a JSON payments file."""
    ap = argparse.ArgumentParser(description="Build the shift sales report for a date range.")
    ap.add_argument("json_path", help="Path to a JSON list of payment documents")
    ap.add_argument("--start", required=True, help="First day of the report (YYYY-MM-DD)")
    ap.add_argument("--end", required=True, help="Last day of the report (YYYY-MM-DD)")
    ap.add_argument(
        "--shift",
        default="all",
        choices=["all", "shift1", "shift2"],
        help="Detail sections to include (default: all)",
    )
    ap.add_argument("-o", "--output-dir", default="reports", help="Directory for the workbook")
    ap.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    docs = json.loads(Path(args.json_path).read_text(encoding="utf-8"))

    try:
        settings = ReportSettings.from_env()
        batch = records_to_frame(docs)
        report = build_shift_report(batch, args.start, args.end, args.shift, settings)
        commissions = commission_overview(batch, args.start, args.end, settings=settings)
    except WashAPIError as e:
        raise SystemExit(f"Cannot build report: {e}") from e

    summary = report.summary
    print(f"\n=== Shift Sales Report {summary.start_date} to {summary.end_date} ===")
    for shift in (Shift.SHIFT1, Shift.SHIFT2):
        total = summary.shift1_total if shift is Shift.SHIFT1 else summary.shift2_total
        count = summary.shift1_count if shift is Shift.SHIFT1 else summary.shift2_count
        print(f"{shift_heading(shift, settings):<24} {count:>5}  {format_peso(total, settings)}")
    print(f"{'Total Sales':<24} {'':>5}  {format_peso(summary.combined_total, settings)}")

    if summary.skipped_records:
        print(f"\nWARNING: {summary.skipped_records} malformed payment(s) were skipped.")

    for section in report.sections:
        print(f"\n--- {section.label} ---")
        if section.is_empty:
            print(section.placeholder)
        else:
            print(section.items.to_string(index=False))

    print("\n=== Commissions ===")
    if commissions.employee_count:
        print(commissions.table.to_string())
    print(f"Total commissions: {format_peso(commissions.total_commissions, settings)}")

    dashboard = build_dashboard(batch, settings)
    print("\nMost availed services (all time):")
    print(dashboard.most_availed.to_string(index=False))

    output_path = write_report(report, args.output_dir, settings)
    print(f"\nWrote {output_path}")


if __name__ == "__main__":
    main()
