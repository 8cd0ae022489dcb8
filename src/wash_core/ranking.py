"""Ranking of aggregation tables."""

from __future__ import annotations

import pandas as pd

from wash_core.aggregate import customer_frequency, service_frequency
from wash_core.config import ReportSettings, resolve_settings
from wash_core.exceptions import DataQualityError
from wash_core.records import RecordsInput


def rank(
    table: pd.DataFrame,
    by: str,
    limit: int | None = None,
    search: str | None = None,
    name_column: str = "name",
) -> pd.DataFrame:
    """Order an aggregation table by a numeric column, descending.

    The search filter is applied before sorting and truncation, so it narrows
    the candidate set instead of filtering an already truncated list. The
    sort is stable: rows with equal values keep their input order.

    Args:
        table: Aggregation table (frequency or commissions).
        by: Numeric column to rank by.
        limit: Maximum number of rows to return; None for all rows.
        search: Optional case-insensitive substring matched against
            ``name_column``.
        name_column: Column holding display names.

    Returns:
        Ranked (and possibly truncated) copy of ``table``.

    Raises:
        DataQualityError: If ``by`` or ``name_column`` is missing.
        ValueError: If ``limit`` is negative.

    Examples:
        >>> table = pd.DataFrame({"name": ["Wash", "Wax", "Vacuum"], "count": [2, 5, 2]})
        >>> rank(table, "count", limit=2)["name"].tolist()
        ['Wax', 'Wash']
    """
    missing = [col for col in (by, name_column) if col not in table.columns]
    if missing:
        raise DataQualityError(f"Cannot rank: missing columns {missing}")
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    ranked = table
    if search:
        needle = search.strip().lower()
        names = ranked[name_column].fillna("").astype(str).str.lower()
        ranked = ranked[names.str.contains(needle, regex=False)]

    ranked = ranked.sort_values(by, ascending=False, kind="stable")
    if limit is not None:
        ranked = ranked.head(limit)
    return ranked.copy()


def top_services(
    records: RecordsInput,
    limit: int | None = None,
    search: str | None = None,
    settings: ReportSettings | None = None,
) -> pd.DataFrame:
    """Most availed services; ``limit`` defaults to ``settings.top_n``."""
    if limit is None:
        limit = resolve_settings(settings).top_n
    return rank(service_frequency(records), "count", limit=limit, search=search)


def top_customers(
    records: RecordsInput,
    limit: int | None = None,
    search: str | None = None,
    settings: ReportSettings | None = None,
) -> pd.DataFrame:
    """Customers with the most paid payments; ``limit`` defaults to ``settings.top_n``."""
    if limit is None:
        limit = resolve_settings(settings).top_n
    return rank(customer_frequency(records), "count", limit=limit, search=search)


def rank_commissions(table: pd.DataFrame, search: str | None = None) -> pd.DataFrame:
    """Full commissions table ordered by total, optionally narrowed by name."""
    return rank(table, "total", limit=None, search=search)
