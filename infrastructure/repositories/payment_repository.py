"""In-memory payment and failure-record stores.

Single-process only. Writes and id sequences are serialized by an
asyncio.Lock per store; a database-backed implementation would rely on
row-level transactions instead.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from domain.common.exceptions import PaymentNotFoundException
from domain.payment.entity import Payment, PaymentFailureRecord
from domain.payment.repository import FailureRecordRepository, PaymentRepository
from core.logging_config import get_logger


logger = get_logger(__name__)


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self) -> None:
        self._payments: Dict[int, Payment] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def add(self, payment: Payment) -> Payment:  # type: ignore[override]
        async with self._lock:
            payment.assign_id(self._next_id)
            self._next_id += 1
            self._payments[payment.id] = payment
        logger.debug("payment_stored", payment_id=payment.id)
        return payment

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:  # type: ignore[override]
        return self._payments.get(payment_id)

    async def list_all(self) -> List[Payment]:  # type: ignore[override]
        return list(self._payments.values())

    async def save(self, payment: Payment) -> Payment:  # type: ignore[override]
        async with self._lock:
            if payment.id is None or payment.id not in self._payments:
                raise PaymentNotFoundException(payment.id)
            self._payments[payment.id] = payment
        return payment


class InMemoryFailureRecordRepository(FailureRecordRepository):
    def __init__(self) -> None:
        self._records: List[PaymentFailureRecord] = []
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def add(self, record: PaymentFailureRecord) -> PaymentFailureRecord:  # type: ignore[override]
        async with self._lock:
            stored = record.with_id(self._next_id)
            self._next_id += 1
            self._records.append(stored)
        return stored

    async def list_by_payment_id(self, payment_id: int) -> List[PaymentFailureRecord]:  # type: ignore[override]
        return [r for r in self._records if r.payment_id == payment_id]

    async def list_all(self) -> List[PaymentFailureRecord]:  # type: ignore[override]
        return list(self._records)
