from __future__ import annotations

import random

from application.ports.card_approval import CardApprovalOracle
from core.config import settings
from .simulated import SimulatedCardApprovalOracle


def get_card_approval_oracle() -> CardApprovalOracle:
    """Build the configured approval oracle (simulator until a gateway adapter exists)."""
    cfg = settings.approval
    rng = random.Random(cfg.seed) if cfg.seed is not None else None
    return SimulatedCardApprovalOracle(
        card_limit=cfg.card_limit,
        network_error_rate=cfg.network_error_rate,
        rng=rng,
    )


__all__ = ["SimulatedCardApprovalOracle", "get_card_approval_oracle"]
