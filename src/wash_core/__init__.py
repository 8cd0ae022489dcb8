"""Wash Core - sales and commission aggregation for a car-wash business.

This package turns a snapshot of payment records into the derived data the
operations dashboard shows and exports:

- **Shifts**: classify each payment into Shift 1 (08:00-20:00) or Shift 2
  (20:00-08:00 next day) within a reporting range
- **Aggregation**: overall totals, service/customer frequency, shift totals
- **Commissions**: labor and referral commission totals per employee
- **Ranking**: top-N services and customers, ranked commission tables
- **Report**: multi-section shift sales report, exportable to Excel

Module Structure:
    wash_core.records: PaymentRecord and the normalized payments frame
    wash_core.shifts: Time partitioning (Shift, ShiftMode, classify_shift)
    wash_core.aggregate: Sales aggregation
    wash_core.commissions: Commission splitting and per-employee totals
    wash_core.ranking: Stable top-N ranking with name search
    wash_core.report: Shift report assembly
    wash_core.dashboard: Dashboard metrics and transaction filters
    wash_core.export: Sheet conversion and Excel writer
    wash_core.config: ReportSettings

Quick Start:
    >>> from wash_core import ReportSettings, build_shift_report
    >>> from wash_core.export import write_report
    >>>
    >>> settings = ReportSettings(timezone="Asia/Manila")
    >>> report = build_shift_report(payment_docs, "2024-06-01", "2024-06-07",
    ...                             mode="all", settings=settings)
    >>> print(report.summary.combined_total)
    >>> write_report(report, "reports", settings)
"""

__version__ = "0.1.0"

from wash_core.commissions import aggregate_commissions
from wash_core.config import ReportSettings
from wash_core.exceptions import (
    ConfigError,
    DataQualityError,
    InvalidRange,
    MalformedRecord,
    WashAPIError,
)
from wash_core.records import CommissionShare, PaymentRecord, records_to_frame
from wash_core.report import ShiftReport, build_shift_report
from wash_core.shifts import Shift, ShiftMode, classify_shift

__all__ = [
    "CommissionShare",
    "ConfigError",
    "DataQualityError",
    "InvalidRange",
    "MalformedRecord",
    "PaymentRecord",
    "ReportSettings",
    "Shift",
    "ShiftMode",
    "ShiftReport",
    "WashAPIError",
    "__version__",
    "aggregate_commissions",
    "build_shift_report",
    "classify_shift",
    "records_to_frame",
]
