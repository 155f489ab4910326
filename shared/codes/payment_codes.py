"""
Payment specific business codes.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Payment lifecycle errors (6xxxx)
    PAYMENT_NOT_FOUND = 60000
    INVALID_STATE_TRANSITION = 60001
    ID_ALREADY_ASSIGNED = 60002
    POLICY_NOT_CONFIGURED = 60003
