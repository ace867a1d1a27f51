"""Deterministic error model for store calls and the retry layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pail.reasons import RetryReason


class ErrorCode(IntEnum):
    RUNTIME_ERROR = 1
    CONFIG_ERROR = 2
    CONNECTIVITY = 3
    ROUTING = 4
    NOT_FOUND = 5
    EXISTS = 6
    CAS_MISMATCH = 7
    VALIDATION = 8
    RETRY_LIMIT = 9
    BUILDER_STATE = 10


@dataclass(eq=False)
class PailError(Exception):
    message: str
    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass(eq=False)
class StoreError(PailError):
    """Failure reported by the store client for one physical attempt."""

    retry_reason: RetryReason | None = None


@dataclass(eq=False)
class ConnectivityError(StoreError):
    code: ErrorCode = ErrorCode.CONNECTIVITY


class OverloadError(ConnectivityError):
    pass


class StoreTimeoutError(ConnectivityError):
    pass


class NetworkError(ConnectivityError):
    pass


class DispatchError(ConnectivityError):
    pass


class ShutdownError(ConnectivityError):
    pass


class NoOpenBucketsError(ConnectivityError):
    pass


class ClientInternalError(ConnectivityError):
    pass


class StreamClosedError(ConnectivityError):
    pass


class StreamStateChangedError(ConnectivityError):
    pass


class StreamDisconnectedError(ConnectivityError):
    pass


class StreamTooSlowError(ConnectivityError):
    pass


@dataclass(eq=False)
class RoutingError(StoreError):
    """Request reached a node that does not own the target partition."""

    code: ErrorCode = ErrorCode.ROUTING


@dataclass(eq=False)
class DocumentNotFoundError(StoreError):
    code: ErrorCode = ErrorCode.NOT_FOUND


@dataclass(eq=False)
class DocumentExistsError(StoreError):
    code: ErrorCode = ErrorCode.EXISTS


@dataclass(eq=False)
class CasMismatchError(StoreError):
    code: ErrorCode = ErrorCode.CAS_MISMATCH


@dataclass(eq=False)
class PathNotFoundError(StoreError):
    code: ErrorCode = ErrorCode.NOT_FOUND


@dataclass(eq=False)
class PathExistsError(StoreError):
    code: ErrorCode = ErrorCode.EXISTS


@dataclass(eq=False)
class InvalidArgumentError(StoreError):
    code: ErrorCode = ErrorCode.VALIDATION


class RetryLimitBreachedError(PailError):
    """Budget exhausted; the last underlying failure stays reachable."""

    def __init__(self, last_error: BaseException, *, attempts: int) -> None:
        super().__init__(
            f"retry limit breached after {attempts} attempts (last error: {last_error})",
            code=ErrorCode.RETRY_LIMIT,
            hint="Check cluster connectivity or raise the retry limit.",
        )
        self.last_error = last_error
        self.attempts = attempts


@dataclass(eq=False)
class BuilderStateError(PailError):
    code: ErrorCode = ErrorCode.BUILDER_STATE


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
