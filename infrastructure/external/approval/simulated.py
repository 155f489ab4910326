"""
Simulated card approval oracle.

Stands in for a real card gateway: declines non-VIP payments above the card
limit and injects random network errors. The random source is injectable so
runs can be made deterministic.
"""
from __future__ import annotations

import random
from decimal import Decimal
from typing import Optional

from core.logging_config import get_logger
from domain.payment.entity import FailureType, PaymentSnapshot


logger = get_logger(__name__)


class SimulatedCardApprovalOracle:
    def __init__(
        self,
        *,
        card_limit: Decimal = Decimal("50000"),
        network_error_rate: float = 0.1,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not 0.0 <= network_error_rate <= 1.0:
            raise ValueError("network_error_rate must be within [0, 1]")
        self.card_limit = Decimal(card_limit)
        self.network_error_rate = network_error_rate
        self._rng = rng or random.Random()

    async def approve(self, snapshot: PaymentSnapshot) -> Optional[FailureType]:
        if not snapshot.vip and snapshot.taxed_amount.is_greater_than(self.card_limit):
            outcome: Optional[FailureType] = FailureType.CARD_LIMIT_EXCEEDED
        elif self._rng.random() < self.network_error_rate:
            outcome = FailureType.NETWORK_ERROR
        else:
            outcome = None
        logger.debug(
            "card_approval_simulated",
            payment_id=snapshot.payment_id,
            outcome=outcome.value if outcome else "approved",
        )
        return outcome
