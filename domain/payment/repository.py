"""
Payment repository interfaces - abstract data access for payments and failure records.
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Payment, PaymentFailureRecord


class PaymentRepository(ABC):
    """Payment repository contract: what can be done, not how."""

    @abstractmethod
    async def add(self, payment: Payment) -> Payment:
        """Persist a new payment and assign its id"""
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Payment]:
        pass

    @abstractmethod
    async def save(self, payment: Payment) -> Payment:
        """Persist state changes of an existing payment"""
        pass


class FailureRecordRepository(ABC):
    """Append-only store of terminal approval failures."""

    @abstractmethod
    async def add(self, record: PaymentFailureRecord) -> PaymentFailureRecord:
        """Persist the record and return it with its assigned id"""
        pass

    @abstractmethod
    async def list_by_payment_id(self, payment_id: int) -> List[PaymentFailureRecord]:
        pass

    @abstractmethod
    async def list_all(self) -> List[PaymentFailureRecord]:
        pass
