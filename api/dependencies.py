"""
API dependencies - engine wiring
"""
from fastapi import Request

from application.services.payment_service import ApprovalEngine
from core.config import settings
from domain.payment.policy import PolicyRegistry, PricingPolicy
from infrastructure.external.approval import get_card_approval_oracle
from infrastructure.external.notifications import get_notifier
from infrastructure.repositories.payment_repository import (
    InMemoryFailureRecordRepository,
    InMemoryPaymentRepository,
)


def build_approval_engine() -> ApprovalEngine:
    """Composition root: wire the engine from settings."""
    cfg = settings.payment
    return ApprovalEngine(
        payments=InMemoryPaymentRepository(),
        failure_records=InMemoryFailureRecordRepository(),
        oracle=get_card_approval_oracle(),
        notifier=get_notifier(),
        policies=PolicyRegistry.default(
            vip_max_attempts=cfg.vip_max_attempts,
            us_high_value_threshold=cfg.us_high_value_threshold,
        ),
        pricing=PricingPolicy(
            vip_discount_rate=cfg.vip_discount_rate,
            regular_discount_rate=cfg.regular_discount_rate,
            tax_rate=cfg.tax_rate,
        ),
        retry_backoff_seconds=cfg.retry_backoff_seconds,
    )


async def get_approval_engine(request: Request) -> ApprovalEngine:
    return request.app.state.approval_engine
