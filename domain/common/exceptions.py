"""Domain-level business exceptions shared by the domain and infrastructure layers.

The core layer only maps these to responses; the domain never imports core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for business exceptions."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class InvalidStateTransitionException(BusinessException):
    def __init__(self, current: str, target: str, payment_id: Optional[int] = None):
        super().__init__(
            code=PaymentCode.INVALID_STATE_TRANSITION,
            message=f"Cannot transition payment from {current} to {target}",
            error_type="InvalidStateTransition",
            details={"payment_id": payment_id, "current": current, "target": target},
            field="status",
        )


class IdAlreadyAssignedException(BusinessException):
    def __init__(self, current_id: int, attempted_id: int):
        super().__init__(
            code=PaymentCode.ID_ALREADY_ASSIGNED,
            message=f"Payment id already assigned: {current_id}",
            error_type="IdAlreadyAssigned",
            details={"current_id": current_id, "attempted_id": attempted_id},
            field="id",
        )


class PaymentNotFoundException(BusinessException):
    def __init__(self, payment_id: int):
        super().__init__(
            code=PaymentCode.PAYMENT_NOT_FOUND,
            message=f"Payment not found: {payment_id}",
            error_type="PaymentNotFound",
            details={"payment_id": payment_id},
        )
