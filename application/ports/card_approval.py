"""
Card approval port (application/ports) exposing a replaceable protocol.

Production adapters call a real gateway; tests inject deterministic stubs.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from domain.payment.entity import FailureType, PaymentSnapshot


@runtime_checkable
class CardApprovalOracle(Protocol):
    """Decides whether one approval attempt is approved.

    Returns None when approved, otherwise the decline reason. Implementations
    must treat the snapshot as read-only.
    """

    async def approve(self, snapshot: PaymentSnapshot) -> Optional[FailureType]: ...
