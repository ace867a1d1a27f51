"""Retry decision vocabulary shared with the store client engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

_ALWAYS_RETRY = frozenset({"kv_not_my_vbucket", "kv_collection_outdated"})
_NON_IDEMPOTENT_SAFE = frozenset(
    {
        "kv_not_my_vbucket",
        "kv_collection_outdated",
        "kv_error_map_retry_indicated",
        "kv_locked",
        "kv_temporary_failure",
        "kv_sync_write_in_progress",
        "kv_sync_write_re_commit_in_progress",
        "service_response_code_indicated",
        "socket_not_available",
        "service_not_available",
        "node_not_available",
        "circuit_breaker_open",
        "query_index_not_found",
        "query_prepared_statement_failure",
    }
)


class RetryReason(str, Enum):
    UNKNOWN = "unknown"
    SOCKET_NOT_AVAILABLE = "socket_not_available"
    SERVICE_NOT_AVAILABLE = "service_not_available"
    NODE_NOT_AVAILABLE = "node_not_available"
    KV_NOT_MY_VBUCKET = "kv_not_my_vbucket"
    KV_COLLECTION_OUTDATED = "kv_collection_outdated"
    KV_ERROR_MAP_RETRY_INDICATED = "kv_error_map_retry_indicated"
    KV_LOCKED = "kv_locked"
    KV_TEMPORARY_FAILURE = "kv_temporary_failure"
    KV_SYNC_WRITE_IN_PROGRESS = "kv_sync_write_in_progress"
    KV_SYNC_WRITE_RE_COMMIT_IN_PROGRESS = "kv_sync_write_re_commit_in_progress"
    SERVICE_RESPONSE_CODE_INDICATED = "service_response_code_indicated"
    SOCKET_CLOSED_WHILE_IN_FLIGHT = "socket_closed_while_in_flight"
    CIRCUIT_BREAKER_OPEN = "circuit_breaker_open"
    QUERY_INDEX_NOT_FOUND = "query_index_not_found"
    QUERY_PREPARED_STATEMENT_FAILURE = "query_prepared_statement_failure"

    @property
    def always_retry(self) -> bool:
        """Stale routing: the request must be redirected whatever the budget says."""
        return self.value in _ALWAYS_RETRY

    @property
    def allows_non_idempotent_retry(self) -> bool:
        return self.value in _NON_IDEMPOTENT_SAFE

    @property
    def description(self) -> str:
        return self.value.upper()


@dataclass
class RetryRequest:
    """Physical request the engine is about to retry."""

    identifier: str = ""
    idempotent: bool = False
    attempts: int = 0
    reasons: list[RetryReason] = field(default_factory=list)


@dataclass(frozen=True)
class RetryAction:
    delay: float = 0.0
    retry: bool = True

    @classmethod
    def after(cls, delay: float) -> RetryAction:
        return cls(delay=delay, retry=True)


STOP = RetryAction(delay=0.0, retry=False)


class RetryStrategy(Protocol):
    def retry_after(self, request: RetryRequest | None, reason: RetryReason) -> RetryAction: ...
