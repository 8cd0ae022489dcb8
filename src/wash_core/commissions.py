"""Per-employee commission aggregation.

Each paid payment credits labor commissions to the employees who did the
work and, optionally, a referral commission to whoever referred the
customer. Shares are exploded into one row per share and then folded per
employee id:

- labor share: ``labor_total += amount``, ``transaction_count += 1``
- referrer share: ``referrer_total += amount``, ``transaction_count += 1``
- ``total = labor_total + referrer_total``

An employee credited in both roles on the same payment gets both
increments. Employees are keyed by id; the displayed name is the one on the
first share seen for that id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from wash_core.config import ReportSettings
from wash_core.exceptions import InvalidRange
from wash_core.records import RecordsInput, as_payments_frame, paid_only
from wash_core.shifts import DateLike, local_days, parse_report_date

logger = logging.getLogger(__name__)

LABOR = "labor"
REFERRER = "referrer"

SHARE_COLUMNS = ["payment_id", "employee_id", "employee_name", "role", "amount"]
COMMISSION_COLUMNS = ["name", "labor_total", "referrer_total", "total", "transaction_count"]


@dataclass(frozen=True)
class EmployeeCommission:
    """Commission totals of one employee."""

    employee_id: str
    name: str
    labor_total: float
    referrer_total: float
    total: float
    transaction_count: int


def split_commissions(records: RecordsInput) -> pd.DataFrame:
    """Explode paid payments into one row per commission share.

    Rows come in scan order: payments in input order, and within a payment
    its labor shares followed by its referrer share.

    Args:
        records: Payments (frame, batch, records or store documents).

    Returns:
        DataFrame with columns ``SHARE_COLUMNS``.
    """
    frame = paid_only(as_payments_frame(records).frame)

    rows = []
    for payment_id, labor, referrer in zip(
        frame["id"], frame["employee_shares"], frame["referrer_share"]
    ):
        for share in labor:
            rows.append(
                {
                    "payment_id": payment_id,
                    "employee_id": share.employee_id,
                    "employee_name": share.employee_name,
                    "role": LABOR,
                    "amount": share.commission_amount,
                }
            )
        if referrer is not None:
            rows.append(
                {
                    "payment_id": payment_id,
                    "employee_id": referrer.employee_id,
                    "employee_name": referrer.employee_name,
                    "role": REFERRER,
                    "amount": referrer.commission_amount,
                }
            )

    shares = pd.DataFrame(rows, columns=SHARE_COLUMNS)
    shares["amount"] = shares["amount"].astype(float)
    return shares


def aggregate_commissions(
    records: RecordsInput,
    start_date: DateLike = None,
    end_date: DateLike = None,
    settings: ReportSettings | None = None,
) -> pd.DataFrame:
    """Fold paid payments into per-employee commission totals.

    Args:
        records: Payments (frame, batch, records or store documents).
        start_date: Optional first local calendar day to include.
        end_date: Optional last local calendar day to include.
        settings: Report settings (timezone for the date filter).

    Returns:
        DataFrame indexed by ``employee_id`` with columns
        ``COMMISSION_COLUMNS``, rows in order of each employee's first
        share. Employees without shares in scope do not appear.

    Raises:
        InvalidRange: If a bound is not a valid date or ``start_date`` is
            after ``end_date``.
    """
    frame = paid_only(as_payments_frame(records).frame)
    frame = _filter_days(frame, start_date, end_date, settings)

    shares = split_commissions(frame)
    if shares.empty:
        return _empty_commissions()

    shares["labor"] = shares["amount"].where(shares["role"] == LABOR, 0.0)
    shares["referrer"] = shares["amount"].where(shares["role"] == REFERRER, 0.0)

    table = shares.groupby("employee_id", sort=False).agg(
        name=("employee_name", "first"),
        labor_total=("labor", "sum"),
        referrer_total=("referrer", "sum"),
        transaction_count=("amount", "size"),
    )
    table["total"] = table["labor_total"] + table["referrer_total"]
    table["transaction_count"] = table["transaction_count"].astype(int)

    logger.debug(
        "Aggregated %d commission shares across %d employees", len(shares), len(table)
    )
    return table[COMMISSION_COLUMNS]


def commission_mapping(table: pd.DataFrame) -> dict[str, EmployeeCommission]:
    """Convert a commissions table into a mapping of employee id to totals."""
    return {
        str(employee_id): EmployeeCommission(
            employee_id=str(employee_id),
            name=row["name"],
            labor_total=float(row["labor_total"]),
            referrer_total=float(row["referrer_total"]),
            total=float(row["total"]),
            transaction_count=int(row["transaction_count"]),
        )
        for employee_id, row in table.iterrows()
    }


def _filter_days(
    frame: pd.DataFrame,
    start_date: DateLike,
    end_date: DateLike,
    settings: ReportSettings | None,
) -> pd.DataFrame:
    # Either bound may be left open
    start = parse_report_date(start_date, "start date") if start_date else None
    end = parse_report_date(end_date, "end date") if end_date else None
    if start is not None and end is not None and start > end:
        raise InvalidRange(f"Commission start date {start} is after end date {end}")
    if start is None and end is None:
        return frame

    day = local_days(frame, settings)
    keep = pd.Series(True, index=frame.index)
    if start is not None:
        keep &= day >= pd.Timestamp(start)
    if end is not None:
        keep &= day <= pd.Timestamp(end)
    return frame[keep]


def _empty_commissions() -> pd.DataFrame:
    table = pd.DataFrame(
        {
            "name": pd.Series(dtype=object),
            "labor_total": pd.Series(dtype=float),
            "referrer_total": pd.Series(dtype=float),
            "total": pd.Series(dtype=float),
            "transaction_count": pd.Series(dtype=int),
        }
    )
    table.index.name = "employee_id"
    return table
