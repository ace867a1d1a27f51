"""Connection-failure classification for retry decisions."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from pail.errors import (
    ClientInternalError,
    DispatchError,
    NetworkError,
    NoOpenBucketsError,
    OverloadError,
    ShutdownError,
    StoreTimeoutError,
    StreamClosedError,
    StreamDisconnectedError,
    StreamStateChangedError,
    StreamTooSlowError,
)


class FailureReason(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    ALWAYS_RETRY = "always_retry"


Classifier = Callable[[BaseException], FailureReason]

CONNECTION_ERRORS: frozenset[type[BaseException]] = frozenset(
    {
        NoOpenBucketsError,
        DispatchError,
        ShutdownError,
        OverloadError,
        NetworkError,
        StoreTimeoutError,
        ClientInternalError,
        StreamClosedError,
        StreamStateChangedError,
        StreamDisconnectedError,
        StreamTooSlowError,
    }
)


def _requires_redirect(error: BaseException) -> bool:
    reason = getattr(error, "retry_reason", None)
    return bool(getattr(reason, "always_retry", False))


@dataclass(frozen=True)
class ErrorClassifier:
    """Maps a failure to TRANSIENT, PERMANENT or ALWAYS_RETRY.

    Only the listed types count as transient. Unknown errors are permanent.
    A redirect marker attached by the call machinery wins over the type.
    """

    transient_types: frozenset[type[BaseException]] = CONNECTION_ERRORS

    @classmethod
    def of(cls, transient_types: Iterable[type[BaseException]]) -> ErrorClassifier:
        return cls(transient_types=frozenset(transient_types))

    def classify(self, error: BaseException) -> FailureReason:
        if _requires_redirect(error):
            return FailureReason.ALWAYS_RETRY
        if isinstance(error, tuple(self.transient_types)):
            return FailureReason.TRANSIENT
        return FailureReason.PERMANENT

    def is_transient(self, error: BaseException | None) -> bool:
        if error is None:
            return False
        return self.classify(error) is FailureReason.TRANSIENT

    def __call__(self, error: BaseException) -> FailureReason:
        return self.classify(error)


DEFAULT_CLASSIFIER = ErrorClassifier()


def is_connect_error(error: BaseException | None) -> bool:
    return DEFAULT_CLASSIFIER.is_transient(error)
