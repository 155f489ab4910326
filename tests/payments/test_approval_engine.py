import asyncio
from decimal import Decimal

import pytest

from application.services.payment_service import ApprovalEngine
from domain.common.exceptions import (
    DomainValidationException,
    InvalidStateTransitionException,
    PaymentNotFoundException,
)
from domain.payment.entity import FailureType, PaymentStatus
from domain.payment.policy import KoreaApprovalPolicy, PolicyRegistry
from infrastructure.repositories.payment_repository import (
    InMemoryFailureRecordRepository,
    InMemoryPaymentRepository,
)


CARD = FailureType.CARD_LIMIT_EXCEEDED
NETWORK = FailureType.NETWORK_ERROR
REJECTED = FailureType.POLICY_REJECTED


@pytest.mark.asyncio
async def test_create_payment_applies_discount_then_tax(engine):
    payment = await engine.create_payment(10000, "KR", vip=False)
    assert payment.id == 1
    assert payment.status is PaymentStatus.PENDING
    assert payment.original_price.amount == Decimal("10000")
    assert payment.discounted_amount.amount == Decimal("9500")
    assert payment.taxed_amount.amount == Decimal("10450")
    assert await engine.find_payment(1) is payment


@pytest.mark.asyncio
async def test_create_payment_assigns_sequential_ids(engine):
    first = await engine.create_payment(100, "KR", vip=False)
    second = await engine.create_payment(100, "us", vip=True)
    assert (first.id, second.id) == (1, 2)
    assert second.country.code == "US"
    assert len(await engine.list_payments()) == 2


@pytest.mark.asyncio
async def test_create_payment_rejects_invalid_input(engine):
    with pytest.raises(DomainValidationException):
        await engine.create_payment(-1, "KR", vip=False)
    with pytest.raises(DomainValidationException):
        await engine.create_payment(1000, "JP", vip=False)
    assert await engine.list_payments() == []


@pytest.mark.asyncio
async def test_approve_success_completes_payment(engine, oracle, notifier):
    payment = await engine.create_payment(10000, "KR", vip=False)
    result = await engine.approve(payment.id)
    assert result.success
    assert result.failure_type is None and result.failure_record is None
    assert result.payment.status is PaymentStatus.COMPLETED
    assert oracle.call_count == 1
    assert await engine.find_failure_records(payment.id) == []
    assert notifier.messages == []


@pytest.mark.asyncio
async def test_non_vip_card_limit_makes_one_attempt(make_engine, make_oracle, notifier):
    oracle = make_oracle([CARD])
    engine = make_engine(oracle=oracle, notifier=notifier)
    payment = await engine.create_payment(60000, "KR", vip=False)

    result = await engine.approve(payment.id)

    assert not result.success
    assert result.failure_type is CARD
    assert oracle.call_count == 1
    assert payment.status is PaymentStatus.FAILED
    records = await engine.find_failure_records(payment.id)
    assert records == [result.failure_record]
    assert records[0].id == 1
    assert records[0].amount_at_failure == payment.taxed_amount
    assert "VIP: false" in records[0].policy_info
    assert "Country: KR" in records[0].policy_info
    assert "DiscountRate: 5%" in records[0].policy_info
    assert "max attempts exceeded" in records[0].policy_info
    assert len(notifier.messages) == 1


@pytest.mark.asyncio
async def test_vip_retries_until_approved_on_third_call(make_engine, make_oracle):
    oracle = make_oracle([NETWORK, CARD, None])
    engine = make_engine(oracle=oracle)
    payment = await engine.create_payment(10000, "KR", vip=True)

    result = await engine.approve(payment.id)

    assert result.success
    assert oracle.call_count == 3
    assert payment.status is PaymentStatus.COMPLETED
    assert await engine.find_failure_records(payment.id) == []


@pytest.mark.asyncio
async def test_vip_exhausts_attempts_and_records_once(make_engine, make_oracle, notifier):
    oracle = make_oracle([NETWORK])
    engine = make_engine(oracle=oracle, notifier=notifier)
    payment = await engine.create_payment(10000, "KR", vip=True)

    result = await engine.approve(payment.id)

    assert not result.success
    assert result.failure_type is NETWORK
    assert oracle.call_count == 3
    # one record per approval call, not per attempt
    assert len(await engine.find_failure_records(payment.id)) == 1
    assert "VIP payment failure" in notifier.messages[0]


@pytest.mark.asyncio
async def test_policy_rejection_from_oracle_is_never_retried(make_engine, make_oracle):
    oracle = make_oracle([REJECTED, None])
    engine = make_engine(oracle=oracle)
    payment = await engine.create_payment(10000, "KR", vip=True)

    result = await engine.approve(payment.id)

    assert not result.success
    assert result.failure_type is REJECTED
    assert oracle.call_count == 1
    assert "terminated without retry" in result.failure_record.policy_info


@pytest.mark.asyncio
async def test_us_high_value_rejected_without_consulting_oracle(make_engine, make_oracle):
    oracle = make_oracle([REJECTED])
    engine = make_engine(oracle=oracle)
    # 100000 -> 90000 (VIP discount) -> 99000 taxed; use a larger amount
    payment = await engine.create_payment(200000, "US", vip=True)
    assert payment.taxed_amount.is_greater_than(100000)

    result = await engine.approve(payment.id)

    assert not result.success
    assert result.failure_type is REJECTED
    assert oracle.call_count == 0
    records = await engine.find_failure_records(payment.id)
    assert len(records) == 1
    assert "Country: US" in records[0].policy_info
    assert "US high-value" in records[0].policy_info


@pytest.mark.asyncio
async def test_us_payment_under_threshold_uses_retry_loop(make_engine, make_oracle):
    oracle = make_oracle([NETWORK, None])
    engine = make_engine(oracle=oracle)
    payment = await engine.create_payment(1000, "US", vip=True)

    result = await engine.approve(payment.id)

    assert result.success
    assert oracle.call_count == 2


@pytest.mark.asyncio
async def test_notifier_failure_does_not_affect_outcome(make_engine, make_oracle, failing_notifier):
    engine = make_engine(oracle=make_oracle([CARD]), notifier=failing_notifier)
    payment = await engine.create_payment(60000, "KR", vip=False)

    result = await engine.approve(payment.id)

    assert failing_notifier.attempts == 1
    assert not result.success
    assert result.failure_type is CARD
    assert (await engine.find_payment(payment.id)).status is PaymentStatus.FAILED
    assert len(await engine.find_failure_records(payment.id)) == 1


@pytest.mark.asyncio
async def test_notifier_unexpected_error_is_also_isolated(make_engine, make_oracle, failing_notifier):
    failing_notifier.exc = RuntimeError("boom")
    engine = make_engine(oracle=make_oracle([NETWORK]), notifier=failing_notifier)
    payment = await engine.create_payment(100, "KR", vip=False)

    result = await engine.approve(payment.id)

    assert not result.success
    assert payment.status is PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_approving_twice_is_illegal(engine):
    payment = await engine.create_payment(100, "KR", vip=False)
    await engine.approve(payment.id)
    with pytest.raises(InvalidStateTransitionException):
        await engine.approve(payment.id)


@pytest.mark.asyncio
async def test_oracle_exception_propagates_and_leaves_payment_pending(make_engine):
    class BrokenOracle:
        async def approve(self, snapshot):
            raise ConnectionError("gateway unreachable")

    engine = make_engine(oracle=BrokenOracle())
    payment = await engine.create_payment(100, "KR", vip=True)
    with pytest.raises(ConnectionError):
        await engine.approve(payment.id)
    assert payment.status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_unknown_payment_raises_not_found(engine):
    with pytest.raises(PaymentNotFoundException):
        await engine.find_payment(404)
    with pytest.raises(PaymentNotFoundException):
        await engine.approve(404)


@pytest.mark.asyncio
async def test_refund_after_completion(engine):
    payment = await engine.create_payment(100, "KR", vip=False)
    await engine.approve(payment.id)
    refunded = await engine.refund(payment.id)
    assert refunded.status is PaymentStatus.REFUNDED
    with pytest.raises(InvalidStateTransitionException):
        await engine.refund(payment.id)


@pytest.mark.asyncio
async def test_refund_of_pending_payment_fails(engine):
    payment = await engine.create_payment(100, "KR", vip=False)
    with pytest.raises(InvalidStateTransitionException):
        await engine.refund(payment.id)


@pytest.mark.asyncio
async def test_list_failure_records_across_payments(make_engine, make_oracle):
    engine = make_engine(oracle=make_oracle([CARD]))
    first = await engine.create_payment(60000, "KR", vip=False)
    second = await engine.create_payment(60000, "KR", vip=False)
    await engine.approve(first.id)
    await engine.approve(second.id)
    records = await engine.list_failure_records()
    assert [r.payment_id for r in records] == [first.id, second.id]
    assert [r.id for r in records] == [1, 2]


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", [None, CARD], ids=["completed", "failed"])
async def test_settled_payment_is_refused_before_oracle(make_engine, make_oracle, outcome):
    oracle = make_oracle([outcome])
    engine = make_engine(oracle=oracle)
    payment = await engine.create_payment(60000, "KR", vip=True)
    await engine.approve(payment.id)
    calls = oracle.call_count
    settled = payment.status

    with pytest.raises(InvalidStateTransitionException) as ei:
        await engine.approve(payment.id)

    assert oracle.call_count == calls
    assert payment.status is settled
    assert ei.value.details["current"] == settled.value
    assert len(await engine.find_failure_records(payment.id)) == (0 if outcome is None else 1)


@pytest.mark.asyncio
async def test_concurrent_approvals_of_one_payment_consult_oracle_once(make_engine, make_oracle):
    class YieldingOracle(make_oracle):
        async def approve(self, snapshot):
            await asyncio.sleep(0)
            return await super().approve(snapshot)

    oracle = YieldingOracle()
    engine = make_engine(oracle=oracle)
    payment = await engine.create_payment(100, "KR", vip=True)

    results = await asyncio.gather(
        engine.approve(payment.id),
        engine.approve(payment.id),
        return_exceptions=True,
    )

    assert sorted(type(r).__name__ for r in results) == [
        "InvalidStateTransitionException",
        "PaymentApprovalResult",
    ]
    assert oracle.call_count == 1
    assert payment.status is PaymentStatus.COMPLETED
    assert engine._locks == {}


@pytest.mark.asyncio
async def test_payment_locks_are_released_after_use(engine):
    for _ in range(100):
        with pytest.raises(PaymentNotFoundException):
            await engine.approve(404)
    payment = await engine.create_payment(100, "KR", vip=False)
    await engine.approve(payment.id)
    await engine.refund(payment.id)
    assert engine._locks == {}
    assert engine._lock_users == {}


@pytest.mark.asyncio
async def test_failed_record_store_leaves_payment_pending(make_oracle, notifier):
    class BrokenRecordStore(InMemoryFailureRecordRepository):
        async def add(self, record):
            raise RuntimeError("record store down")

    engine = ApprovalEngine(
        payments=InMemoryPaymentRepository(),
        failure_records=BrokenRecordStore(),
        oracle=make_oracle([CARD]),
        notifier=notifier,
    )
    payment = await engine.create_payment(60000, "KR", vip=False)

    with pytest.raises(RuntimeError):
        await engine.approve(payment.id)

    assert payment.status is PaymentStatus.PENDING
    assert notifier.messages == []


def test_engine_requires_policy_for_every_supported_country(make_engine):
    with pytest.raises(ValueError):
        make_engine(policies=PolicyRegistry([KoreaApprovalPolicy()]))
