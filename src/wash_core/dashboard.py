"""Dashboard metrics and transaction filters.

In-memory helpers behind the admin dashboard, the sales transactions screen
and the commissions screen. Like the rest of the engine these functions:

- do NOT read or write any files,
- do NOT read the current user's role or any other ambient state,
- do NOT mutate the payments they are given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from wash_core.aggregate import overall_total
from wash_core.commissions import aggregate_commissions
from wash_core.config import ReportSettings, resolve_settings
from wash_core.ranking import rank_commissions, top_customers, top_services
from wash_core.records import RecordsInput, as_payments_frame, paid_only
from wash_core.shifts import DateLike, local_days, parse_report_date

logger = logging.getLogger(__name__)

STATUSES = ("paid", "unpaid")


@dataclass(frozen=True)
class TransactionStats:
    """Quick stats of the sales transactions screen (all time)."""

    total_sales: float
    paid_count: int
    unpaid_count: int


@dataclass
class CommissionOverview:
    """Commissions screen: ranked table plus headline figures.

    Attributes:
        table: Commissions ranked by total (unbounded), indexed by employee id.
        total_commissions: Sum of ``total`` over the rows in ``table``.
        employee_count: Number of rows in ``table``.
    """

    table: pd.DataFrame
    total_commissions: float
    employee_count: int


@dataclass
class DashboardSummary:
    """Admin dashboard headline metrics over all paid payments."""

    overall_sales: float
    paid_count: int
    most_availed: pd.DataFrame
    top_customers: pd.DataFrame


def transaction_stats(records: RecordsInput) -> TransactionStats:
    """Total paid sales plus paid/unpaid transaction counts."""
    frame = as_payments_frame(records).frame
    paid_count = int(frame["paid"].sum())
    return TransactionStats(
        total_sales=overall_total(frame),
        paid_count=paid_count,
        unpaid_count=len(frame) - paid_count,
    )


def unique_services(records: RecordsInput) -> list[str]:
    """Distinct non-blank service names across all payments, first seen first."""
    names = as_payments_frame(records).frame["service_name"]
    names = names[names.str.strip() != ""]
    return list(dict.fromkeys(names))


def filter_transactions(
    records: RecordsInput,
    customer: str | None = None,
    plate: str | None = None,
    status: str | None = None,
    service: str | None = None,
    day: DateLike = None,
    settings: ReportSettings | None = None,
) -> pd.DataFrame:
    """Filter payments the way the transactions screen does.

    All filters are optional and combined with AND; row order is kept.

    Args:
        records: Payments (frame, batch, records or store documents).
        customer: Case-insensitive substring of the customer name.
        plate: Case-insensitive substring of the plate number.
        status: "paid" or "unpaid".
        service: Exact service name.
        day: Local calendar day of the payment.
        settings: Report settings (timezone for ``day``).

    Returns:
        Filtered copy of the normalized payments frame.

    Raises:
        ValueError: If ``status`` is not "paid" or "unpaid".
        InvalidRange: If ``day`` is not a valid date.
    """
    frame = as_payments_frame(records).frame
    keep = pd.Series(True, index=frame.index)

    if customer:
        keep &= _contains(frame["customer_name"], customer)
    if plate:
        keep &= _contains(frame["plate_number"], plate)
    if status:
        status = status.strip().lower()
        if status not in STATUSES:
            raise ValueError(f"Invalid status '{status}'. Must be 'paid' or 'unpaid'.")
        keep &= frame["paid"] if status == "paid" else ~frame["paid"]
    if service:
        keep &= frame["service_name"] == service
    if day:
        target = parse_report_date(day, "day")
        keep &= local_days(frame, resolve_settings(settings)) == pd.Timestamp(target)

    result = frame[keep].copy()
    logger.debug("Filtered transactions: %d of %d", len(result), len(frame))
    return result


def commission_overview(
    records: RecordsInput,
    start_date: DateLike = None,
    end_date: DateLike = None,
    search: str | None = None,
    settings: ReportSettings | None = None,
) -> CommissionOverview:
    """Commissions per employee for an optional date range and name search."""
    table = rank_commissions(
        aggregate_commissions(records, start_date, end_date, settings), search=search
    )
    return CommissionOverview(
        table=table,
        total_commissions=float(table["total"].sum()),
        employee_count=len(table),
    )


def build_dashboard(
    records: RecordsInput, settings: ReportSettings | None = None
) -> DashboardSummary:
    """Headline metrics of the admin dashboard.

    Most availed services and top customers are ranked over all paid
    payments and truncated to ``settings.top_n``.
    """
    settings = resolve_settings(settings)
    frame = as_payments_frame(records).frame
    return DashboardSummary(
        overall_sales=overall_total(frame),
        paid_count=len(paid_only(frame)),
        most_availed=top_services(frame, settings=settings),
        top_customers=top_customers(frame, settings=settings),
    )


def _contains(values: pd.Series, needle: str) -> pd.Series:
    return values.astype(str).str.lower().str.contains(needle.lower(), regex=False)
