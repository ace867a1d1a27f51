from __future__ import annotations

import threading

import pytest

from pail.budget import RetryBudget
from pail.errors import ErrorCode, PailError
from pail.reasons import STOP, RetryAction, RetryReason, RetryRequest


class RecordingStrategy:
    def __init__(self, action: RetryAction) -> None:
        self.action = action
        self.calls: list[tuple[RetryRequest | None, RetryReason]] = []

    def retry_after(self, request: RetryRequest | None, reason: RetryReason) -> RetryAction:
        self.calls.append((request, reason))
        return self.action


def test_budget_allows_limit_retries_then_stops() -> None:
    budget = RetryBudget(limit=2, delay=0.01)

    first = budget.retry_after(None, RetryReason.KV_TEMPORARY_FAILURE)
    second = budget.retry_after(None, RetryReason.NODE_NOT_AVAILABLE)
    third = budget.retry_after(None, RetryReason.KV_LOCKED)

    assert first == RetryAction.after(0.01)
    assert second == RetryAction.after(0.01)
    assert third is STOP
    assert budget.attempts == 3


def test_zero_limit_stops_on_first_counted_reason() -> None:
    budget = RetryBudget(limit=0, delay=0.01)

    assert budget.retry_after(None, RetryReason.SOCKET_NOT_AVAILABLE) is STOP


def test_always_retry_reason_ignores_counter() -> None:
    budget = RetryBudget(limit=0, delay=0.05)

    for _ in range(10):
        action = budget.retry_after(None, RetryReason.KV_NOT_MY_VBUCKET)
        assert action.retry is True
        assert action.delay == 0.05

    assert budget.attempts == 0


def test_delegate_decides_and_counter_still_advances() -> None:
    delegate = RecordingStrategy(RetryAction.after(1.5))
    budget = RetryBudget(limit=0, delay=0.01, delegate=delegate)
    request = RetryRequest(identifier="q1")

    action = budget.retry_after(request, RetryReason.SERVICE_NOT_AVAILABLE)

    assert action == RetryAction.after(1.5)
    assert delegate.calls == [(request, RetryReason.SERVICE_NOT_AVAILABLE)]
    assert budget.attempts == 1


def test_delegate_always_retry_does_not_touch_counter() -> None:
    delegate = RecordingStrategy(STOP)
    budget = RetryBudget(limit=3, delay=0.01, delegate=delegate)

    action = budget.retry_after(None, RetryReason.KV_COLLECTION_OUTDATED)

    assert action is STOP
    assert budget.attempts == 0
    assert len(delegate.calls) == 1


def test_consume_reports_remaining_budget() -> None:
    budget = RetryBudget(limit=1, delay=0.0)

    assert budget.consume() is True
    assert budget.consume() is False
    assert budget.attempts == 2


@pytest.mark.parametrize(("limit", "delay"), [(-1, 0.0), (1, -0.5)])
def test_invalid_budget_is_a_config_error(limit: int, delay: float) -> None:
    with pytest.raises(PailError) as exc_info:
        RetryBudget(limit=limit, delay=delay)

    assert exc_info.value.code is ErrorCode.CONFIG_ERROR


def test_concurrent_callbacks_do_not_lose_updates() -> None:
    workers = 16
    calls_per_worker = 250
    total = workers * calls_per_worker
    budget = RetryBudget(limit=total, delay=0.0)
    barrier = threading.Barrier(workers)
    actions: list[RetryAction] = []
    actions_lock = threading.Lock()

    def report() -> None:
        barrier.wait()
        local = [budget.retry_after(None, RetryReason.KV_TEMPORARY_FAILURE) for _ in range(calls_per_worker)]
        with actions_lock:
            actions.extend(local)

    threads = [threading.Thread(target=report) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert budget.attempts == total
    assert len(actions) == total
    assert all(action.retry for action in actions)
