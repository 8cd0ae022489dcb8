"""Payment records and their normalized DataFrame form.

Payments reach the engine either as ``PaymentRecord`` instances or as raw
documents from the record store (camelCase keys such as ``customerName``,
``createdAt`` and ``employees``). Every public engine function accepts both
and funnels them through ``as_payments_frame``, which produces one row per
payment with the columns in ``PAYMENT_COLUMNS``.

Malformed records (no ``createdAt``, non-numeric or negative price) are
dropped with a warning and counted, never aborting the computation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

import numpy as np
import pandas as pd

from wash_core.exceptions import DataQualityError, MalformedRecord

logger = logging.getLogger(__name__)

# Column layout of the normalized payments frame
PAYMENT_COLUMNS = [
    "id",
    "customer_name",
    "car_descriptor",
    "plate_number",
    "variety",
    "service_id",
    "service_name",
    "price",
    "cashier_name",
    "cashier_full_name",
    "employee_shares",
    "referrer_share",
    "created_at",
    "paid",
    "payment_method",
    "amount_tendered",
    "change_given",
]

# Columns a caller-supplied DataFrame must carry
REQUIRED_COLUMNS = ["id", "customer_name", "service_name", "price", "created_at", "paid"]

# Representable instants; one day of slack leaves room for any UTC offset
EARLIEST_EPOCH_SECONDS = (pd.Timestamp.min + pd.Timedelta(days=1)).timestamp()
LATEST_EPOCH_SECONDS = (pd.Timestamp.max - pd.Timedelta(days=1)).timestamp()


@dataclass(frozen=True)
class CommissionShare:
    """A single commission credited to one employee on one payment.

    Attributes:
        employee_id: Stable employee identifier (document id).
        employee_name: Display name captured on the payment.
        commission_amount: Non-negative amount credited.
    """

    employee_id: str
    employee_name: str
    commission_amount: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> CommissionShare | None:
        """Build a share from a store entry (``{id, name, commission}``).

        Accepts an existing ``CommissionShare``, a store mapping, or a
        mapping using this class's own field names. Entries without an
        employee id yield None. A missing or non-numeric commission counts
        as zero.

        Raises:
            MalformedRecord: If the commission amount is negative.
        """
        if value is None:
            return None
        if isinstance(value, CommissionShare):
            share = value
        elif isinstance(value, Mapping):
            employee_id = value.get("id", value.get("employee_id"))
            name = value.get("name", value.get("employee_name"))
            amount = value.get("commission", value.get("commission_amount"))
            share = cls(
                employee_id=_clean_text(employee_id),
                employee_name=_clean_text(name),
                commission_amount=_to_number(amount, default=0.0),
            )
        else:
            return None

        if not share.employee_id:
            return None
        if share.commission_amount < 0:
            raise MalformedRecord(
                f"Negative commission {share.commission_amount} for employee {share.employee_id}"
            )
        return share


@dataclass(frozen=True)
class PaymentRecord:
    """A completed or pending car-wash transaction.

    ``created_at`` is seconds since the epoch and is the only time axis used
    for reporting. Only records with ``paid=True`` take part in sales and
    commission aggregation.
    """

    id: str
    customer_name: str
    service_name: str
    price: float
    created_at: float
    paid: bool = False
    car_descriptor: str = ""
    plate_number: str = ""
    variety: str = ""
    service_id: str = ""
    cashier_name: str = ""
    cashier_full_name: str = ""
    employee_shares: tuple[CommissionShare, ...] = field(default_factory=tuple)
    referrer_share: CommissionShare | None = None
    payment_method: str | None = None
    amount_tendered: float | None = None
    change_given: float | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: str | None = None) -> PaymentRecord:
        """Map a record-store document to a ``PaymentRecord``.

        Args:
            doc: Document fields as stored (camelCase keys).
            doc_id: Document id; falls back to ``doc["id"]``.

        Returns:
            PaymentRecord instance.

        Raises:
            MalformedRecord: If ``createdAt`` is missing or not an instant,
                or ``price`` is missing, non-numeric or negative.

        Examples:
            >>> rec = PaymentRecord.from_document(
            ...     {"customerName": "Ana", "serviceName": "Wash", "price": 150,
            ...      "createdAt": 1718000000, "paid": True},
            ...     doc_id="p1",
            ... )
            >>> rec.price
            150.0
        """
        record_id = _clean_text(doc_id if doc_id is not None else doc.get("id"))

        created_at = _to_epoch_seconds(doc.get("createdAt"))
        if created_at is None:
            raise MalformedRecord(f"Payment {record_id!r} has no usable createdAt", record_id)

        price = _to_number(doc.get("price"))
        if price is None:
            raise MalformedRecord(
                f"Payment {record_id!r} has non-numeric price {doc.get('price')!r}", record_id
            )
        if price < 0:
            raise MalformedRecord(f"Payment {record_id!r} has negative price {price}", record_id)

        try:
            shares = tuple(
                s
                for s in (CommissionShare.coerce(e) for e in (doc.get("employees") or []))
                if s is not None
            )
            referrer = CommissionShare.coerce(doc.get("referrer"))
        except MalformedRecord as e:
            raise MalformedRecord(f"Payment {record_id!r}: {e}", record_id) from e

        return cls(
            id=record_id,
            customer_name=_clean_text(doc.get("customerName")),
            service_name=_clean_text(doc.get("serviceName")),
            price=price,
            created_at=created_at,
            paid=_to_bool(doc.get("paid")),
            car_descriptor=_clean_text(doc.get("carName")),
            plate_number=_clean_text(doc.get("plateNumber")),
            variety=_clean_text(doc.get("variety")),
            service_id=_clean_text(doc.get("serviceId")),
            cashier_name=_clean_text(doc.get("cashier")),
            cashier_full_name=_clean_text(doc.get("cashierFullName")),
            employee_shares=shares,
            referrer_share=referrer,
            payment_method=doc.get("paymentMethod") or None,
            amount_tendered=_to_number(doc.get("amountTendered")),
            change_given=_to_number(doc.get("change")),
        )

    def validate(self) -> None:
        """Check the invariants the aggregation relies on.

        Raises:
            MalformedRecord: If the price is not a non-negative number or
                ``created_at`` is not an instant pandas can represent.
        """
        if _to_epoch_seconds(self.created_at) is None:
            raise MalformedRecord(f"Payment {self.id!r} has no usable createdAt", self.id)
        price = _to_number(self.price)
        if price is None or price < 0:
            raise MalformedRecord(f"Payment {self.id!r} has invalid price {self.price!r}", self.id)
        for share in (*self.employee_shares, self.referrer_share):
            if share is not None and share.commission_amount < 0:
                raise MalformedRecord(
                    f"Payment {self.id!r} has negative commission for {share.employee_id}",
                    self.id,
                )

    def to_row(self) -> dict[str, Any]:
        """Return the record as a row of the normalized payments frame."""
        return {column: getattr(self, column) for column in PAYMENT_COLUMNS}


@dataclass
class RecordBatch:
    """Normalized payments plus the bookkeeping of what was dropped.

    Attributes:
        frame: One row per usable payment, columns ``PAYMENT_COLUMNS``, in
            the order the records were supplied.
        skipped: Number of malformed records that were dropped.
        skipped_ids: Ids of the dropped records (empty string when unknown).
    """

    frame: pd.DataFrame
    skipped: int = 0
    skipped_ids: list[str] = field(default_factory=list)


RecordsInput = Union[pd.DataFrame, RecordBatch, Iterable[Union[PaymentRecord, Mapping[str, Any]]]]


def records_to_frame(records: Iterable[PaymentRecord | Mapping[str, Any]]) -> RecordBatch:
    """Normalize records or store documents into a payments frame.

    Args:
        records: ``PaymentRecord`` instances and/or raw store documents.

    Returns:
        RecordBatch with the normalized frame and the skipped-record count.
    """
    rows = []
    skipped_ids: list[str] = []
    for item in records:
        try:
            if isinstance(item, PaymentRecord):
                item.validate()
                rows.append(item.to_row())
            else:
                rows.append(PaymentRecord.from_document(item).to_row())
        except MalformedRecord as e:
            logger.warning("Skipping malformed payment: %s", e)
            skipped_ids.append(e.record_id or "")

    frame = _with_dtypes(pd.DataFrame(rows, columns=PAYMENT_COLUMNS))
    if skipped_ids:
        logger.info(f"Normalized {len(frame)} payments, skipped {len(skipped_ids)} malformed")
    return RecordBatch(frame=frame, skipped=len(skipped_ids), skipped_ids=skipped_ids)


def as_payments_frame(records: RecordsInput) -> RecordBatch:
    """Accept any supported record input and return a normalized batch.

    DataFrames are validated and copied, never modified in place. Rows whose
    ``created_at`` or ``price`` cannot be read as numbers (or whose price is
    negative) are dropped and counted as skipped.

    Args:
        records: A payments DataFrame, a RecordBatch, or an iterable of
            ``PaymentRecord`` / store documents.

    Returns:
        RecordBatch.

    Raises:
        DataQualityError: If a DataFrame lacks any of ``REQUIRED_COLUMNS``.
    """
    if isinstance(records, RecordBatch):
        return records
    if not isinstance(records, pd.DataFrame):
        return records_to_frame(records)

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in records.columns]
    if missing_cols:
        raise DataQualityError(
            f"Missing required columns in payments frame: {missing_cols}. "
            f"Required: {REQUIRED_COLUMNS}"
        )

    df = records.copy()
    for col in PAYMENT_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[PAYMENT_COLUMNS].copy()

    df["price"] = pd.to_numeric(df["price"], errors="coerce")
    df["created_at"] = pd.to_numeric(df["created_at"], errors="coerce")

    shares_col = []
    referrer_col = []
    bad_shares = []
    for labor, referrer in zip(df["employee_shares"], df["referrer_share"]):
        try:
            shares_col.append(_coerce_shares(labor))
            referrer_col.append(CommissionShare.coerce(None if _is_missing(referrer) else referrer))
            bad_shares.append(False)
        except MalformedRecord as e:
            logger.debug("Negative commission in payments frame: %s", e)
            shares_col.append(())
            referrer_col.append(None)
            bad_shares.append(True)
    df["employee_shares"] = pd.Series(shares_col, index=df.index, dtype=object)
    df["referrer_share"] = pd.Series(referrer_col, index=df.index, dtype=object)

    bad = (
        df["price"].isna()
        | (df["price"] < 0)
        | ~df["created_at"].between(EARLIEST_EPOCH_SECONDS, LATEST_EPOCH_SECONDS)
        | pd.Series(bad_shares, index=df.index, dtype=bool)
    )
    skipped_ids = [_clean_text(v) for v in df.loc[bad, "id"]]
    if skipped_ids:
        logger.warning("Skipping %d malformed payment row(s): %s", len(skipped_ids), skipped_ids)
    df = df.loc[~bad].reset_index(drop=True)

    return RecordBatch(frame=_with_dtypes(df), skipped=len(skipped_ids), skipped_ids=skipped_ids)


def require_epoch_seconds(value: Any, record_id: str | None = None) -> float:
    """Return ``value`` as epoch seconds within the representable range.

    Raises:
        MalformedRecord: If the value is missing, non-numeric, a naive
            datetime, or an instant outside the pandas timestamp range
            (millisecond timestamps land here).
    """
    seconds = _to_epoch_seconds(value)
    if seconds is None:
        raise MalformedRecord(f"Unusable payment instant {value!r}", record_id)
    return seconds


def paid_only(frame: pd.DataFrame) -> pd.DataFrame:
    """Return the paid rows of a normalized payments frame, order kept."""
    return frame[frame["paid"]]


def _with_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    df["id"] = _text_series(df["id"])
    df["price"] = df["price"].astype(float)
    df["created_at"] = df["created_at"].astype(float)
    df["paid"] = pd.Series([_to_bool(v) for v in df["paid"]], index=df.index, dtype=bool)
    for col in ["customer_name", "service_name", "cashier_name", "cashier_full_name", "plate_number"]:
        df[col] = _text_series(df[col])
    return df


def _text_series(values: pd.Series) -> pd.Series:
    return pd.Series([_clean_text(v) for v in values], index=values.index, dtype=object)


def _coerce_shares(value: Any) -> tuple[CommissionShare, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    shares = (CommissionShare.coerce(entry) for entry in value)
    return tuple(s for s in shares if s is not None)


def _is_missing(value: Any) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and pd.isna(value))


def _clean_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value)


def _to_bool(value: Any) -> bool:
    # Only a real boolean True marks a payment as paid
    return isinstance(value, (bool, np.bool_)) and bool(value)


def _to_number(value: Any, default: float | None = None) -> float | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _to_epoch_seconds(value: Any) -> float | None:
    # Store timestamps are either epoch seconds or timezone-aware datetimes
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return None
        seconds = value.timestamp()
    else:
        seconds = _to_number(value)
    if seconds is None or not EARLIEST_EPOCH_SECONDS <= seconds <= LATEST_EPOCH_SECONDS:
        return None
    return seconds
