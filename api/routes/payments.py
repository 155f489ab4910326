"""
Payments API routes.

Thin HTTP surface over the ApprovalEngine: create, approve, refund and query
payments and their failure history. Business declines come back as 200 with
success=false; only misuse (unknown id, illegal transition, bad input) maps
to an error envelope.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_approval_engine
from application.dtos.payments import (
    ApprovalResponse,
    CreatePaymentRequest,
    FailureRecordModel,
    PaymentRecord,
)
from application.services.payment_service import ApprovalEngine
from core.response import success_response


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", summary="Create payment")
async def create_payment(payload: CreatePaymentRequest, engine: ApprovalEngine = Depends(get_approval_engine)):
    payment = await engine.create_payment(payload.amount, payload.country_code, payload.vip)
    return success_response(
        data=PaymentRecord.from_entity(payment).model_dump(mode="json"),
        message="Payment created",
    )


@router.get("", summary="List payments")
async def list_payments(engine: ApprovalEngine = Depends(get_approval_engine)):
    payments = await engine.list_payments()
    return success_response(data=[PaymentRecord.from_entity(p).model_dump(mode="json") for p in payments])


@router.get("/failures", summary="List all failure records")
async def list_failure_records(engine: ApprovalEngine = Depends(get_approval_engine)):
    records = await engine.list_failure_records()
    return success_response(data=[FailureRecordModel.from_entity(r).model_dump(mode="json") for r in records])


@router.get("/{payment_id}", summary="Get payment")
async def get_payment(payment_id: int, engine: ApprovalEngine = Depends(get_approval_engine)):
    payment = await engine.find_payment(payment_id)
    return success_response(data=PaymentRecord.from_entity(payment).model_dump(mode="json"))


@router.post("/{payment_id}/approve", summary="Approve payment")
async def approve_payment(payment_id: int, engine: ApprovalEngine = Depends(get_approval_engine)):
    result = await engine.approve(payment_id)
    return success_response(
        data=ApprovalResponse.from_result(result).model_dump(mode="json"),
        message="Payment approved" if result.success else "Payment declined",
    )


@router.post("/{payment_id}/refund", summary="Refund payment")
async def refund_payment(payment_id: int, engine: ApprovalEngine = Depends(get_approval_engine)):
    payment = await engine.refund(payment_id)
    return success_response(
        data=PaymentRecord.from_entity(payment).model_dump(mode="json"),
        message="Payment refunded",
    )


@router.get("/{payment_id}/failures", summary="List failure records of a payment")
async def list_payment_failures(payment_id: int, engine: ApprovalEngine = Depends(get_approval_engine)):
    await engine.find_payment(payment_id)
    records = await engine.find_failure_records(payment_id)
    return success_response(data=[FailureRecordModel.from_entity(r).model_dump(mode="json") for r in records])
