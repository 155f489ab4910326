"""
Payment DTOs used at application boundaries.

PaymentApprovalResult is the in-process outcome of an approval call; the
Pydantic v2 models are the wire/persistence shapes.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.payment.entity import (
    FailureType,
    Payment,
    PaymentFailureRecord,
    PaymentStatus,
)
from domain.payment.value_objects import Country, Money


@dataclass(frozen=True)
class PaymentApprovalResult:
    """Either success(payment) or failure(payment, failure_type, failure_record)."""

    success: bool
    payment: Payment
    failure_type: Optional[FailureType] = None
    failure_record: Optional[PaymentFailureRecord] = None

    def __post_init__(self) -> None:
        if self.success and (self.failure_type is not None or self.failure_record is not None):
            raise ValueError("successful approval must not carry failure details")
        if not self.success and (self.failure_type is None or self.failure_record is None):
            raise ValueError("failed approval requires failure_type and failure_record")

    @classmethod
    def succeeded(cls, payment: Payment) -> "PaymentApprovalResult":
        return cls(success=True, payment=payment)

    @classmethod
    def failed(
        cls,
        payment: Payment,
        failure_type: FailureType,
        failure_record: PaymentFailureRecord,
    ) -> "PaymentApprovalResult":
        return cls(
            success=False,
            payment=payment,
            failure_type=failure_type,
            failure_record=failure_record,
        )


class CreatePaymentRequest(BaseModel):
    amount: Decimal = Field(ge=0)
    country_code: str = Field(min_length=2, max_length=2)
    vip: bool = False

    @field_validator("country_code", mode="before")
    @classmethod
    def _upper_country(cls, v):
        # Normalize before the length constraint runs
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PaymentRecord(BaseModel):
    """Round-trippable payment shape. Decimals serialize as exact strings."""

    model_config = ConfigDict(frozen=True)

    id: int
    original_price: Decimal
    discounted_amount: Decimal
    taxed_amount: Decimal
    country_code: str
    vip: bool
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentRecord":
        return cls(
            id=payment.id,
            original_price=payment.original_price.amount,
            discounted_amount=payment.discounted_amount.amount,
            taxed_amount=payment.taxed_amount.amount,
            country_code=payment.country.code,
            vip=payment.vip,
            status=payment.status,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )

    def to_entity(self) -> Payment:
        return Payment.restore(
            id=self.id,
            original_price=Money.of(self.original_price),
            discounted_amount=Money.of(self.discounted_amount),
            taxed_amount=Money.of(self.taxed_amount),
            country=Country.of(self.country_code),
            vip=self.vip,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class FailureRecordModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    payment_id: int
    failure_type: FailureType
    failure_description: str
    amount_at_failure: Decimal
    policy_info: str
    failed_at: datetime

    @classmethod
    def from_entity(cls, record: PaymentFailureRecord) -> "FailureRecordModel":
        return cls(
            id=record.id,
            payment_id=record.payment_id,
            failure_type=record.failure_type,
            failure_description=record.failure_type.description,
            amount_at_failure=record.amount_at_failure.amount,
            policy_info=record.policy_info,
            failed_at=record.failed_at,
        )

    def to_entity(self) -> PaymentFailureRecord:
        return PaymentFailureRecord(
            id=self.id,
            payment_id=self.payment_id,
            failure_type=self.failure_type,
            amount_at_failure=Money.of(self.amount_at_failure),
            policy_info=self.policy_info,
            failed_at=self.failed_at,
        )


class ApprovalResponse(BaseModel):
    success: bool
    failure_type: Optional[FailureType] = None
    payment: PaymentRecord
    failure_record: Optional[FailureRecordModel] = None

    @classmethod
    def from_result(cls, result: PaymentApprovalResult) -> "ApprovalResponse":
        record = result.failure_record
        return cls(
            success=result.success,
            failure_type=result.failure_type,
            payment=PaymentRecord.from_entity(result.payment),
            failure_record=FailureRecordModel.from_entity(record) if record else None,
        )
