"""
Failure notification with error isolation.

A notifier outage degrades observability only: nothing raised here may reach
the approval flow.
"""
from __future__ import annotations

from application.ports.notifier import Notifier
from core.logging_config import get_logger
from domain.payment.entity import FailureType, Payment


logger = get_logger(__name__)


def format_failure_message(payment: Payment, failure_type: FailureType) -> str:
    if payment.vip:
        return (
            "[VIP payment failure] "
            f"payment_id={payment.id}, failure={failure_type.description}, "
            f"amount={payment.taxed_amount}, country={payment.country}"
        )
    return f"[Payment failure] payment_id={payment.id}, failure={failure_type.description}"


class FailureNotifier:
    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier

    async def notify(self, payment: Payment, failure_type: FailureType) -> bool:
        """Best-effort send; returns False instead of raising on any error."""
        try:
            await self.notifier.send(format_failure_message(payment, failure_type))
        except Exception as exc:
            logger.warning(
                "failure_notification_failed",
                payment_id=payment.id,
                failure_type=failure_type.value,
                channel=getattr(self.notifier, "channel", None),
                error=str(exc),
            )
            return False
        return True
