"""
Bounded approval retry loop.

Attempts run sequentially within one approval call; each oracle result is
awaited before deciding whether to try again.
"""
from __future__ import annotations

from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
    wait_none,
)

from application.ports.card_approval import CardApprovalOracle
from core.logging_config import get_logger
from domain.payment.entity import FailureType, Payment


logger = get_logger(__name__)


def _is_retryable(outcome: Optional[FailureType]) -> bool:
    return outcome is not None and outcome.retryable


def _last_outcome(retry_state: RetryCallState) -> Optional[FailureType]:
    # Attempts exhausted: hand back the final decline instead of raising RetryError
    return retry_state.outcome.result()


class ApprovalRetrier:
    def __init__(self, oracle: CardApprovalOracle, *, backoff_seconds: float = 0.0) -> None:
        self.oracle = oracle
        self.backoff_seconds = backoff_seconds

    async def attempt(self, payment: Payment, max_attempts: int) -> Optional[FailureType]:
        """Return None when approved, else the terminal FailureType.

        Only retryable declines are retried; POLICY_REJECTED ends the loop at
        once. Exceptions raised by the oracle propagate unchanged.
        """
        snapshot = payment.snapshot()

        def _log_attempt(retry_state: RetryCallState) -> None:
            logger.info(
                "approval_attempt",
                payment_id=payment.id,
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
            )

        def _log_retry(retry_state: RetryCallState) -> None:
            logger.info(
                "approval_retry_scheduled",
                payment_id=payment.id,
                failure_type=retry_state.outcome.result().value,
                next_attempt=retry_state.attempt_number + 1,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(self.backoff_seconds) if self.backoff_seconds > 0 else wait_none(),
            retry=retry_if_result(_is_retryable),
            before=_log_attempt,
            before_sleep=_log_retry,
            retry_error_callback=_last_outcome,
            reraise=True,
        )
        return await retrying(self.oracle.approve, snapshot)
