"""
Terminal failure path: fail the payment, record the failure, notify.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import PaymentApprovalResult
from application.services.failure_notification import FailureNotifier
from core.logging_config import get_logger
from domain.payment.entity import FailureType, Payment, PaymentFailureRecord
from domain.payment.policy import PricingPolicy
from domain.payment.repository import FailureRecordRepository, PaymentRepository


logger = get_logger(__name__)


def build_policy_info(payment: Payment, discount_rate: str, note: Optional[str] = None) -> str:
    """Self-describing snapshot of the policy context at failure time."""
    parts = [
        f"VIP: {str(payment.vip).lower()}",
        f"Country: {payment.country.code}",
        f"DiscountRate: {discount_rate}",
    ]
    if note:
        parts.append(f"Note: {note}")
    return ", ".join(parts)


class FailureHandler:
    def __init__(
        self,
        payments: PaymentRepository,
        failure_records: FailureRecordRepository,
        notifier: FailureNotifier,
        pricing: PricingPolicy,
    ) -> None:
        self.payments = payments
        self.failure_records = failure_records
        self.notifier = notifier
        self.pricing = pricing

    async def handle(
        self,
        payment: Payment,
        failure_type: FailureType,
        note: Optional[str] = None,
    ) -> PaymentApprovalResult:
        # Callers only reach this path while the payment is PENDING.
        # The record is stored first: a FAILED payment always has its record.
        policy_info = build_policy_info(payment, self.pricing.describe_discount(payment.vip), note)
        record = await self.failure_records.add(
            PaymentFailureRecord.new(
                payment_id=payment.id,
                failure_type=failure_type,
                amount_at_failure=payment.taxed_amount,
                policy_info=policy_info,
            )
        )
        logger.info(
            "failure_record_saved",
            payment_id=payment.id,
            record_id=record.id,
            failure_type=failure_type.value,
        )

        payment.fail()
        await self.payments.save(payment)

        await self.notifier.notify(payment, failure_type)
        return PaymentApprovalResult.failed(payment, failure_type, record)
