"""
Payment domain entities - Payment aggregate root and failure record.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from domain.common.exceptions import (
    IdAlreadyAssignedException,
    InvalidStateTransitionException,
)
from .value_objects import Country, Money


class PaymentStatus(str, Enum):
    """Payment status"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class FailureType(str, Enum):
    """Reasons an approval attempt can be declined."""
    CARD_LIMIT_EXCEEDED = "card_limit_exceeded"
    NETWORK_ERROR = "network_error"
    POLICY_REJECTED = "policy_rejected"

    @property
    def description(self) -> str:
        return _FAILURE_DESCRIPTIONS[self]

    @property
    def retryable(self) -> bool:
        # Policy rejections are terminal
        return self is not FailureType.POLICY_REJECTED


_FAILURE_DESCRIPTIONS = {
    FailureType.CARD_LIMIT_EXCEEDED: "Card limit exceeded",
    FailureType.NETWORK_ERROR: "Network error",
    FailureType.POLICY_REJECTED: "Rejected by policy",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Payment:
    """
    Payment aggregate root - owns the payment lifecycle.

    Business rules:
    1. the id is assigned exactly once
    2. status changes only through complete/fail/refund
    3. PENDING -> COMPLETED | FAILED, COMPLETED -> REFUNDED
    """

    def __init__(
        self,
        *,
        original_price: Money,
        discounted_amount: Money,
        taxed_amount: Money,
        country: Country,
        vip: bool,
        status: PaymentStatus,
        created_at: datetime,
        updated_at: datetime,
        id: Optional[int] = None,
    ) -> None:
        self._id = id
        self.original_price = original_price
        self.discounted_amount = discounted_amount
        self.taxed_amount = taxed_amount
        self.country = country
        self.vip = vip
        self._status = PaymentStatus(status)
        self.created_at = _ensure_utc(created_at)
        self.updated_at = _ensure_utc(updated_at)

    @classmethod
    def create(
        cls,
        original_price: Money,
        discounted_amount: Money,
        taxed_amount: Money,
        country: Country,
        vip: bool,
    ) -> "Payment":
        now = _now()
        return cls(
            original_price=original_price,
            discounted_amount=discounted_amount,
            taxed_amount=taxed_amount,
            country=country,
            vip=vip,
            status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def restore(
        cls,
        *,
        id: int,
        original_price: Money,
        discounted_amount: Money,
        taxed_amount: Money,
        country: Country,
        vip: bool,
        status: PaymentStatus,
        created_at: datetime,
        updated_at: datetime,
    ) -> "Payment":
        """Rebuild a persisted payment with its stored status and timestamps."""
        return cls(
            id=id,
            original_price=original_price,
            discounted_amount=discounted_amount,
            taxed_amount=taxed_amount,
            country=country,
            vip=vip,
            status=status,
            created_at=created_at,
            updated_at=updated_at,
        )

    @property
    def id(self) -> Optional[int]:
        return self._id

    @property
    def status(self) -> PaymentStatus:
        return self._status

    def assign_id(self, payment_id: int) -> None:
        if self._id is not None:
            raise IdAlreadyAssignedException(self._id, payment_id)
        self._id = payment_id

    def complete(self) -> None:
        self._transition(PaymentStatus.PENDING, PaymentStatus.COMPLETED)

    def fail(self) -> None:
        self._transition(PaymentStatus.PENDING, PaymentStatus.FAILED)

    def refund(self) -> None:
        self._transition(PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)

    def _transition(self, required: PaymentStatus, target: PaymentStatus) -> None:
        if self._status is not required:
            raise InvalidStateTransitionException(
                self._status.value, target.value, payment_id=self._id
            )
        self._status = target
        self.updated_at = _now()

    def snapshot(self) -> "PaymentSnapshot":
        return PaymentSnapshot(
            payment_id=self._id,
            taxed_amount=self.taxed_amount,
            country=self.country,
            vip=self.vip,
        )

    def __repr__(self) -> str:
        return (
            f"Payment(id={self._id!r}, status={self._status.value}, "
            f"taxed_amount={self.taxed_amount.amount}, country={self.country.code}, vip={self.vip})"
        )


@dataclass(frozen=True)
class PaymentSnapshot:
    """Read-only view of a payment handed to approval oracles."""

    payment_id: Optional[int]
    taxed_amount: Money
    country: Country
    vip: bool


@dataclass(frozen=True)
class PaymentFailureRecord:
    """
    Point-in-time record of one terminal approval failure.

    amount_at_failure is the taxed amount when the failure happened; it is
    never re-derived from the payment later.
    """

    payment_id: int
    failure_type: FailureType
    amount_at_failure: Money
    policy_info: str
    failed_at: datetime
    id: Optional[int] = None

    @classmethod
    def new(
        cls,
        payment_id: int,
        failure_type: FailureType,
        amount_at_failure: Money,
        policy_info: str,
    ) -> "PaymentFailureRecord":
        return cls(
            payment_id=payment_id,
            failure_type=failure_type,
            amount_at_failure=amount_at_failure,
            policy_info=policy_info,
            failed_at=_now(),
        )

    def with_id(self, record_id: int) -> "PaymentFailureRecord":
        return replace(self, id=record_id)
