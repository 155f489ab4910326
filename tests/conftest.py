"""Pytest shared fixtures.

Stub collaborators implement the application ports so approval runs are
deterministic: a scripted oracle and recording/failing notifiers.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

import pytest

from application.ports.notifier import NotificationError
from application.services.payment_service import ApprovalEngine
from domain.payment.entity import FailureType, PaymentSnapshot
from domain.payment.policy import PolicyRegistry
from infrastructure.repositories.payment_repository import (
    InMemoryFailureRecordRepository,
    InMemoryPaymentRepository,
)


class ScriptedOracle:
    """Returns queued outcomes in order; repeats the last one when exhausted."""

    def __init__(self, outcomes: Iterable[Optional[FailureType]] = (None,)) -> None:
        self.outcomes: List[Optional[FailureType]] = list(outcomes)
        self.calls: List[PaymentSnapshot] = []

    async def approve(self, snapshot: PaymentSnapshot) -> Optional[FailureType]:
        self.calls.append(snapshot)
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        return self.outcomes[index]

    @property
    def call_count(self) -> int:
        return len(self.calls)


class RecordingNotifier:
    channel = "memory"

    def __init__(self) -> None:
        self.messages: List[str] = []

    async def send(self, message: str) -> None:
        self.messages.append(message)


class FailingNotifier:
    channel = "broken"

    def __init__(self, exc: Optional[Exception] = None) -> None:
        self.exc = exc or NotificationError("notifier down", channel=self.channel)
        self.attempts = 0

    async def send(self, message: str) -> None:
        self.attempts += 1
        raise self.exc


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_engine():
    def _make(oracle=None, notifier=None, policies: Optional[PolicyRegistry] = None) -> ApprovalEngine:
        return ApprovalEngine(
            payments=InMemoryPaymentRepository(),
            failure_records=InMemoryFailureRecordRepository(),
            oracle=oracle if oracle is not None else ScriptedOracle(),
            notifier=notifier if notifier is not None else RecordingNotifier(),
            policies=policies,
        )
    return _make


@pytest.fixture
def engine(make_engine, oracle, notifier) -> ApprovalEngine:
    return make_engine(oracle=oracle, notifier=notifier)


@pytest.fixture
def make_oracle():
    return ScriptedOracle


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()
