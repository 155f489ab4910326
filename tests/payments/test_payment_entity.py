from datetime import timezone

import pytest

from domain.common.exceptions import IdAlreadyAssignedException, InvalidStateTransitionException
from domain.payment.entity import FailureType, Payment, PaymentFailureRecord, PaymentStatus
from domain.payment.value_objects import Country, Money


def _payment(vip: bool = False) -> Payment:
    return Payment.create(Money.of(10000), Money.of(9500), Money.of(10450), Country.of("KR"), vip)


def _in_status(status: PaymentStatus) -> Payment:
    payment = _payment()
    if status is PaymentStatus.COMPLETED:
        payment.complete()
    elif status is PaymentStatus.FAILED:
        payment.fail()
    elif status is PaymentStatus.REFUNDED:
        payment.complete()
        payment.refund()
    return payment


def test_create_starts_pending_with_utc_timestamps():
    payment = _payment(vip=True)
    assert payment.status is PaymentStatus.PENDING
    assert payment.id is None
    assert payment.vip is True
    assert payment.created_at.tzinfo is timezone.utc
    assert payment.created_at == payment.updated_at


def test_status_has_no_setter():
    payment = _payment()
    with pytest.raises(AttributeError):
        payment.status = PaymentStatus.COMPLETED


def test_complete_then_complete_again_fails():
    payment = _payment()
    payment.complete()
    assert payment.status is PaymentStatus.COMPLETED
    assert payment.updated_at >= payment.created_at
    with pytest.raises(InvalidStateTransitionException):
        payment.complete()


def test_fail_on_completed_payment_fails():
    payment = _in_status(PaymentStatus.COMPLETED)
    with pytest.raises(InvalidStateTransitionException) as ei:
        payment.fail()
    assert ei.value.details["current"] == "completed"
    assert ei.value.details["target"] == "failed"
    assert payment.status is PaymentStatus.COMPLETED


@pytest.mark.parametrize(
    "start, allowed",
    [
        (PaymentStatus.PENDING, False),
        (PaymentStatus.COMPLETED, True),
        (PaymentStatus.FAILED, False),
        (PaymentStatus.REFUNDED, False),
    ],
)
def test_refund_only_reachable_from_completed(start, allowed):
    payment = _in_status(start)
    assert payment.status is start
    if allowed:
        payment.refund()
        assert payment.status is PaymentStatus.REFUNDED
    else:
        with pytest.raises(InvalidStateTransitionException):
            payment.refund()
        assert payment.status is start


def test_assign_id_only_once():
    payment = _payment()
    payment.assign_id(7)
    assert payment.id == 7
    with pytest.raises(IdAlreadyAssignedException):
        payment.assign_id(8)
    assert payment.id == 7


def test_snapshot_is_read_only_view():
    payment = _payment(vip=True)
    payment.assign_id(3)
    snap = payment.snapshot()
    assert snap.payment_id == 3
    assert snap.taxed_amount == Money.of(10450)
    assert snap.vip is True
    with pytest.raises(AttributeError):
        snap.vip = False  # type: ignore[misc]


def test_failure_record_is_immutable_and_timestamped():
    record = PaymentFailureRecord.new(1, FailureType.NETWORK_ERROR, Money.of(10450), "VIP: false")
    assert record.id is None
    assert record.failed_at.tzinfo is timezone.utc
    stored = record.with_id(5)
    assert stored.id == 5 and record.id is None
    with pytest.raises(AttributeError):
        stored.policy_info = "changed"  # type: ignore[misc]


def test_failure_type_policy_rejection_is_terminal():
    assert FailureType.CARD_LIMIT_EXCEEDED.retryable
    assert FailureType.NETWORK_ERROR.retryable
    assert not FailureType.POLICY_REJECTED.retryable
    assert FailureType.POLICY_REJECTED.description == "Rejected by policy"
