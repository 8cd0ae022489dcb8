"""Tests for dashboard metrics and transaction filters."""

import pytest

from tests.test_utils import TEST_SETTINGS, at, payment_doc
from wash_core.config import ReportSettings
from wash_core.dashboard import (
    build_dashboard,
    commission_overview,
    filter_transactions,
    transaction_stats,
    unique_services,
)
from wash_core.exceptions import InvalidRange


@pytest.fixture
def payments():
    return [
        payment_doc(
            "p1",
            at(2024, 6, 10, 9),
            150,
            customer="Ana Lopez",
            plate="ABC 1234",
            employees=[("e1", "Ana", 30)],
        ),
        payment_doc(
            "p2",
            at(2024, 6, 10, 22),
            300,
            customer="Ben Santos",
            service="Wax",
            plate="XYZ 9876",
            employees=[("e2", "Ben", 60)],
            referrer=("e1", "Ana", 10),
        ),
        payment_doc("p3", at(2024, 6, 11, 1), 200, customer="ana lopez", paid=False),
        payment_doc("p4", at(2024, 6, 11, 10), 250, customer="Carl", service="Detailing"),
    ]


def test_transaction_stats(payments) -> None:
    stats = transaction_stats(payments)

    assert stats.total_sales == pytest.approx(700)
    assert stats.paid_count == 3
    assert stats.unpaid_count == 1


def test_unique_services(payments) -> None:
    assert unique_services(payments) == ["Basic Wash", "Wax", "Detailing"]


class TestFilterTransactions:
    def test_no_filters_keeps_everything(self, payments) -> None:
        assert filter_transactions(payments)["id"].tolist() == ["p1", "p2", "p3", "p4"]

    def test_customer_is_case_insensitive(self, payments) -> None:
        result = filter_transactions(payments, customer="ANA")

        assert result["id"].tolist() == ["p1", "p3"]

    def test_plate_substring(self, payments) -> None:
        assert filter_transactions(payments, plate="xyz")["id"].tolist() == ["p2"]

    def test_status(self, payments) -> None:
        assert filter_transactions(payments, status="unpaid")["id"].tolist() == ["p3"]
        assert filter_transactions(payments, status="Paid")["id"].tolist() == ["p1", "p2", "p4"]

    def test_invalid_status(self, payments) -> None:
        with pytest.raises(ValueError):
            filter_transactions(payments, status="refunded")

    def test_service_and_day_combine(self, payments) -> None:
        result = filter_transactions(
            payments, service="Basic Wash", day="2024-06-11", settings=TEST_SETTINGS
        )

        assert result["id"].tolist() == ["p3"]

    def test_day_follows_business_timezone(self, payments) -> None:
        # p3 is 2024-06-11 01:00 in Manila but 2024-06-10 17:00 UTC
        utc = ReportSettings(timezone="UTC")

        result = filter_transactions(payments, day="2024-06-10", settings=utc)

        assert result["id"].tolist() == ["p1", "p2", "p3"]

    def test_invalid_day(self, payments) -> None:
        with pytest.raises(InvalidRange):
            filter_transactions(payments, day="June 10")


def test_commission_overview(payments) -> None:
    overview = commission_overview(payments, settings=TEST_SETTINGS)

    assert overview.table.index.tolist() == ["e2", "e1"]
    assert overview.total_commissions == pytest.approx(100)
    assert overview.employee_count == 2


def test_commission_overview_with_search_and_range(payments) -> None:
    overview = commission_overview(
        payments, "2024-06-10", "2024-06-10", search="an", settings=TEST_SETTINGS
    )

    assert overview.table.index.tolist() == ["e1"]
    assert overview.table.loc["e1", "total"] == pytest.approx(40)
    assert overview.employee_count == 1


def test_build_dashboard(payments) -> None:
    summary = build_dashboard(payments, TEST_SETTINGS)

    assert summary.overall_sales == pytest.approx(700)
    assert summary.paid_count == 3
    assert summary.most_availed["name"].tolist() == ["Basic Wash", "Wax", "Detailing"]
    assert summary.top_customers["name"].tolist() == ["Ana Lopez", "Ben Santos", "Carl"]


def test_build_dashboard_respects_top_n(payments) -> None:
    summary = build_dashboard(payments, ReportSettings(timezone="Asia/Manila", top_n=1))

    assert len(summary.most_availed) == 1
    assert len(summary.top_customers) == 1
