"""
Application service orchestrating payment approval use-cases.

The engine depends only on repository interfaces and the application ports.
Concrete oracles, notifiers and stores are injected from the composition
root (API/tests), keeping dependencies one-way.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from application.dtos.payments import PaymentApprovalResult
from application.ports.card_approval import CardApprovalOracle
from application.ports.notifier import Notifier
from application.services.approval_retry import ApprovalRetrier
from application.services.failure_handler import FailureHandler
from application.services.failure_notification import FailureNotifier
from core.logging_config import get_logger
from domain.common.exceptions import InvalidStateTransitionException, PaymentNotFoundException
from domain.payment.entity import FailureType, Payment, PaymentFailureRecord, PaymentStatus
from domain.payment.policy import PolicyRegistry, PricingPolicy
from domain.payment.repository import FailureRecordRepository, PaymentRepository
from domain.payment.value_objects import Country, Money, Number


logger = get_logger(__name__)

POLICY_REJECTION_NOTE = "policy rejection, terminated without retry"
MAX_ATTEMPTS_NOTE = "max attempts exceeded"


class ApprovalEngine:
    def __init__(
        self,
        *,
        payments: PaymentRepository,
        failure_records: FailureRecordRepository,
        oracle: CardApprovalOracle,
        notifier: Notifier,
        policies: Optional[PolicyRegistry] = None,
        pricing: Optional[PricingPolicy] = None,
        retry_backoff_seconds: float = 0.0,
    ) -> None:
        self.payments = payments
        self.failure_records = failure_records
        self.policies = policies or PolicyRegistry.default()
        if not self.policies.covers_supported_countries():
            raise ValueError("approval policies must cover every supported country")
        self.pricing = pricing or PricingPolicy()
        self.notifier = notifier
        self.retrier = ApprovalRetrier(oracle, backoff_seconds=retry_backoff_seconds)
        self.failure_handler = FailureHandler(
            payments, failure_records, FailureNotifier(notifier), self.pricing
        )
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = {}

    @asynccontextmanager
    async def _payment_lock(self, payment_id: int) -> AsyncIterator[None]:
        # One approval/refund in flight per payment id; the lock goes away with its last user
        lock = self._locks.setdefault(payment_id, asyncio.Lock())
        self._lock_users[payment_id] = self._lock_users.get(payment_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[payment_id] -= 1
            if not self._lock_users[payment_id]:
                del self._lock_users[payment_id]
                del self._locks[payment_id]

    async def create_payment(self, amount: Number, country_code: str, vip: bool) -> Payment:
        original_price = Money.of(amount)
        country = Country.of(country_code)
        discounted, taxed = self.pricing.price(original_price, vip)
        payment = await self.payments.add(
            Payment.create(original_price, discounted, taxed, country, vip)
        )
        logger.info(
            "payment_created",
            payment_id=payment.id,
            country=country.code,
            vip=vip,
            original_price=original_price.amount,
            discounted_amount=discounted.amount,
            taxed_amount=taxed.amount,
        )
        return payment

    async def approve(self, payment_id: int) -> PaymentApprovalResult:
        """Run one approval call. Declines are returned, never raised."""
        async with self._payment_lock(payment_id):
            payment = await self.find_payment(payment_id)
            # Settled payments must never reach the oracle again
            if payment.status is not PaymentStatus.PENDING:
                raise InvalidStateTransitionException(
                    payment.status.value, PaymentStatus.COMPLETED.value, payment_id=payment.id
                )
            policy = self.policies.select(payment.country)

            rejection = policy.pre_check(payment)
            if rejection is not None:
                logger.info(
                    "approval_policy_rejected",
                    payment_id=payment.id,
                    policy=type(policy).__name__,
                    note=rejection,
                )
                return await self._fail(payment, FailureType.POLICY_REJECTED, rejection)

            outcome = await self.retrier.attempt(payment, policy.max_attempts(payment.vip))
            if outcome is None:
                payment.complete()
                await self.payments.save(payment)
                logger.info("approval_succeeded", payment_id=payment.id)
                return PaymentApprovalResult.succeeded(payment)

            note = POLICY_REJECTION_NOTE if not outcome.retryable else MAX_ATTEMPTS_NOTE
            return await self._fail(payment, outcome, note)

    async def _fail(self, payment: Payment, failure_type: FailureType, note: str) -> PaymentApprovalResult:
        result = await self.failure_handler.handle(payment, failure_type, note)
        logger.info(
            "approval_failed",
            payment_id=payment.id,
            failure_type=failure_type.value,
            note=note,
        )
        return result

    async def refund(self, payment_id: int) -> Payment:
        async with self._payment_lock(payment_id):
            payment = await self.find_payment(payment_id)
            payment.refund()
            await self.payments.save(payment)
            logger.info("payment_refunded", payment_id=payment.id)
            return payment

    async def find_payment(self, payment_id: int) -> Payment:
        payment = await self.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFoundException(payment_id)
        return payment

    async def list_payments(self) -> List[Payment]:
        return await self.payments.list_all()

    async def find_failure_records(self, payment_id: int) -> List[PaymentFailureRecord]:
        return await self.failure_records.list_by_payment_id(payment_id)

    async def list_failure_records(self) -> List[PaymentFailureRecord]:
        return await self.failure_records.list_all()
