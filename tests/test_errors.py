from __future__ import annotations

from pail.errors import (
    BuilderStateError,
    ConnectivityError,
    DocumentNotFoundError,
    ErrorCode,
    NetworkError,
    PailError,
    RetryLimitBreachedError,
    RoutingError,
    StoreError,
    user_facing_error,
)
from pail.reasons import RetryReason


def test_error_codes_are_deterministic() -> None:
    assert int(ErrorCode.RUNTIME_ERROR) == 1
    assert int(ErrorCode.CONFIG_ERROR) == 2
    assert int(ErrorCode.CONNECTIVITY) == 3
    assert int(ErrorCode.RETRY_LIMIT) == 9
    assert int(ErrorCode.BUILDER_STATE) == 10


def test_pail_error_string_contains_hint() -> None:
    err = PailError("cluster unreachable", hint="Check the seed nodes")

    assert str(err) == "cluster unreachable Hint: Check the seed nodes"


def test_pail_error_string_without_hint() -> None:
    assert str(PailError("msg")) == "msg"


def test_store_errors_default_codes() -> None:
    assert NetworkError("reset").code is ErrorCode.CONNECTIVITY
    assert DocumentNotFoundError("missing").code is ErrorCode.NOT_FOUND
    assert RoutingError("stale").code is ErrorCode.ROUTING
    assert BuilderStateError("twice").code is ErrorCode.BUILDER_STATE
    assert isinstance(NetworkError("reset"), ConnectivityError)
    assert isinstance(NetworkError("reset"), StoreError)


def test_store_error_carries_retry_reason() -> None:
    err = RoutingError("stale", retry_reason=RetryReason.KV_NOT_MY_VBUCKET)

    assert err.retry_reason is RetryReason.KV_NOT_MY_VBUCKET
    assert err.retry_reason.always_retry is True


def test_errors_compare_by_identity() -> None:
    assert NetworkError("reset") != NetworkError("reset")


def test_retry_limit_error_keeps_last_failure() -> None:
    last = NetworkError("reset")
    err = RetryLimitBreachedError(last, attempts=4)

    assert err.last_error is last
    assert err.attempts == 4
    assert err.code is ErrorCode.RETRY_LIMIT
    assert "retry limit breached" in err.message
    assert "reset" in err.message
    assert "Hint:" in str(err)


def test_user_facing_error_template() -> None:
    assert user_facing_error("something went wrong") == "Error: something went wrong."
    assert (
        user_facing_error("something went wrong", hint="try again")
        == "Error: something went wrong. Next step: try again"
    )
