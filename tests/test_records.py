"""Tests for payment record normalization and malformed-record handling."""

from datetime import datetime, timezone

import pandas as pd
import pytest

from tests.test_utils import at, payment_doc
from wash_core.exceptions import DataQualityError, MalformedRecord
from wash_core.records import (
    PAYMENT_COLUMNS,
    CommissionShare,
    PaymentRecord,
    as_payments_frame,
    paid_only,
    records_to_frame,
)


def test_from_document_maps_store_fields() -> None:
    doc = payment_doc(
        "p1",
        at(2024, 6, 10, 9),
        250,
        cashier_full_name="Maria Santos",
        employees=[("e1", "Ana", 50), ("e2", "Ben", 30)],
        referrer=("e3", "Carl", 20),
    )

    record = PaymentRecord.from_document(doc)

    assert record.id == "p1"
    assert record.price == 250.0
    assert record.paid is True
    assert record.customer_name == "Juan Dela Cruz"
    assert record.car_descriptor == "Toyota Vios"
    assert record.cashier_full_name == "Maria Santos"
    assert record.employee_shares == (
        CommissionShare("e1", "Ana", 50.0),
        CommissionShare("e2", "Ben", 30.0),
    )
    assert record.referrer_share == CommissionShare("e3", "Carl", 20.0)


def test_from_document_uses_explicit_id() -> None:
    doc = payment_doc("ignored", at(2024, 6, 10, 9))
    del doc["id"]

    assert PaymentRecord.from_document(doc, doc_id="abc").id == "abc"


def test_from_document_accepts_aware_datetime() -> None:
    moment = datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)
    record = PaymentRecord.from_document(payment_doc("p1", moment))

    assert record.created_at == moment.timestamp()


@pytest.mark.parametrize("created_at", [None, "yesterday", datetime(2024, 6, 10, 9)])
def test_missing_or_unusable_created_at_is_malformed(created_at) -> None:
    with pytest.raises(MalformedRecord) as excinfo:
        PaymentRecord.from_document(payment_doc("p1", created_at))
    assert excinfo.value.record_id == "p1"


@pytest.mark.parametrize("price", [None, "free", -5])
def test_bad_price_is_malformed(price) -> None:
    with pytest.raises(MalformedRecord):
        PaymentRecord.from_document(payment_doc("p1", at(2024, 6, 10, 9), price))


def test_missing_commission_counts_as_zero_and_blank_ids_are_dropped() -> None:
    doc = payment_doc("p1", at(2024, 6, 10, 9))
    doc["employees"] = [{"id": "e1", "name": "Ana"}, {"id": "", "name": "Ghost", "commission": 9}]
    doc["referrer"] = {"name": "Nobody", "commission": 10}

    record = PaymentRecord.from_document(doc)

    assert record.employee_shares == (CommissionShare("e1", "Ana", 0.0),)
    assert record.referrer_share is None


def test_negative_commission_is_malformed() -> None:
    doc = payment_doc("p1", at(2024, 6, 10, 9), employees=[("e1", "Ana", -1)])
    with pytest.raises(MalformedRecord):
        PaymentRecord.from_document(doc)


def test_records_to_frame_skips_malformed_and_keeps_order() -> None:
    docs = [
        payment_doc("p1", at(2024, 6, 10, 9)),
        payment_doc("bad-time", None),
        payment_doc("p2", at(2024, 6, 10, 10), paid=False),
        payment_doc("bad-price", at(2024, 6, 10, 11), "n/a"),
        payment_doc("p3", at(2024, 6, 10, 12)),
    ]

    batch = records_to_frame(docs)

    assert list(batch.frame.columns) == PAYMENT_COLUMNS
    assert batch.frame["id"].tolist() == ["p1", "p2", "p3"]
    assert batch.skipped == 2
    assert batch.skipped_ids == ["bad-time", "bad-price"]
    assert paid_only(batch.frame)["id"].tolist() == ["p1", "p3"]


def test_records_to_frame_accepts_record_instances() -> None:
    good = PaymentRecord("r1", "Ana", "Wax", 300.0, at(2024, 6, 10, 9), paid=True)
    bad = PaymentRecord("r2", "Ben", "Wax", -1.0, at(2024, 6, 10, 9), paid=True)

    batch = records_to_frame([good, bad])

    assert batch.frame["id"].tolist() == ["r1"]
    assert batch.skipped_ids == ["r2"]


def test_records_to_frame_empty() -> None:
    batch = records_to_frame([])

    assert batch.frame.empty
    assert list(batch.frame.columns) == PAYMENT_COLUMNS
    assert batch.skipped == 0


def test_as_payments_frame_from_dataframe() -> None:
    df = pd.DataFrame(
        {
            "id": ["a", "b", "c"],
            "customer_name": ["Ana", None, "Carl"],
            "service_name": ["Wash", "Wax", "Wash"],
            "price": [100, "oops", 200],
            "created_at": [at(2024, 6, 10, 9), at(2024, 6, 10, 10), None],
            "paid": [True, True, True],
            "employee_shares": [[{"id": "e1", "name": "Ana", "commission": 10}], None, []],
        }
    )

    batch = as_payments_frame(df)

    assert batch.frame["id"].tolist() == ["a"]
    assert batch.skipped == 2
    assert batch.frame.loc[0, "employee_shares"] == (CommissionShare("e1", "Ana", 10.0),)
    assert batch.frame.loc[0, "referrer_share"] is None
    # The caller's frame is left untouched
    assert df["price"].tolist() == [100, "oops", 200]


def test_as_payments_frame_missing_columns() -> None:
    with pytest.raises(DataQualityError):
        as_payments_frame(pd.DataFrame({"id": ["a"], "price": [1.0]}))


@pytest.mark.parametrize(
    "created_at",
    [1e19, -1e19, at(2024, 6, 10, 10) * 1000],
    ids=["far-future", "far-past", "milliseconds"],
)
def test_unrepresentable_created_at_is_malformed(created_at) -> None:
    with pytest.raises(MalformedRecord):
        PaymentRecord.from_document(payment_doc("p1", created_at))

    batch = records_to_frame([payment_doc("ok", at(2024, 6, 10, 10)), payment_doc("p1", created_at)])
    assert batch.frame["id"].tolist() == ["ok"]
    assert batch.skipped_ids == ["p1"]


def test_unrepresentable_created_at_in_dataframe_is_skipped() -> None:
    df = pd.DataFrame(
        {
            "id": ["ok", "ms", "huge"],
            "customer_name": ["Ana", "Ben", "Carl"],
            "service_name": ["Wash", "Wash", "Wash"],
            "price": [100.0, 100.0, 100.0],
            "created_at": [at(2024, 6, 10, 9), at(2024, 6, 10, 9) * 1000, 1e19],
            "paid": [True, True, True],
        }
    )

    batch = as_payments_frame(df)

    assert batch.frame["id"].tolist() == ["ok"]
    assert batch.skipped_ids == ["ms", "huge"]


def test_record_instance_with_millisecond_instant_is_skipped() -> None:
    record = PaymentRecord("r1", "Ana", "Wax", 300.0, at(2024, 6, 10, 9) * 1000, paid=True)

    batch = records_to_frame([record])

    assert batch.frame.empty
    assert batch.skipped == 1


@pytest.mark.parametrize("paid", ["false", "no", "true", 1, None])
def test_only_boolean_true_is_paid(paid) -> None:
    record = PaymentRecord.from_document(payment_doc("p1", at(2024, 6, 10, 9), paid=paid))

    assert record.paid is False


def test_paid_column_in_dataframe_requires_boolean_true() -> None:
    df = pd.DataFrame(
        {
            "id": ["a", "b", "c", "d"],
            "customer_name": ["Ana"] * 4,
            "service_name": ["Wash"] * 4,
            "price": [100.0] * 4,
            "created_at": [at(2024, 6, 10, 9)] * 4,
            "paid": [True, "false", 1, None],
        }
    )

    batch = as_payments_frame(df)

    assert batch.frame["paid"].tolist() == [True, False, False, False]
    assert paid_only(batch.frame)["id"].tolist() == ["a"]
