"""Per-call option records passed through to the store client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pail.reasons import RetryStrategy


class QueryConsistency(str, Enum):
    NOT_BOUNDED = "not_bounded"
    REQUEST_PLUS = "request_plus"
    STATEMENT_PLUS = "statement_plus"


@dataclass(frozen=True)
class CallOptions:
    timeout: float | None = None
    retry_strategy: RetryStrategy | None = None


@dataclass(frozen=True)
class GetOptions(CallOptions):
    with_expiry: bool = False
    project: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExistsOptions(CallOptions):
    pass


@dataclass(frozen=True)
class InsertOptions(CallOptions):
    expiry: float = 0.0


@dataclass(frozen=True)
class UpsertOptions(CallOptions):
    expiry: float = 0.0
    preserve_expiry: bool = False


@dataclass(frozen=True)
class ReplaceOptions(CallOptions):
    cas: int = 0
    expiry: float = 0.0


@dataclass(frozen=True)
class RemoveOptions(CallOptions):
    cas: int = 0


@dataclass(frozen=True)
class TouchOptions(CallOptions):
    pass


@dataclass(frozen=True)
class CounterOptions(CallOptions):
    initial: int | None = None
    expiry: float = 0.0


@dataclass(frozen=True)
class LookupInOptions(CallOptions):
    access_deleted: bool = False


@dataclass(frozen=True)
class MutateInOptions(CallOptions):
    cas: int = 0
    expiry: float = 0.0
    document_flags: int = 0


@dataclass(frozen=True)
class BulkOptions(CallOptions):
    pass


@dataclass(frozen=True)
class QueryOptions(CallOptions):
    consistency: QueryConsistency = QueryConsistency.NOT_BOUNDED
    positional_parameters: list[Any] = field(default_factory=list)
    named_parameters: dict[str, Any] = field(default_factory=dict)
    adhoc: bool = True
    read_only: bool = False


@dataclass(frozen=True)
class IndexOptions(CallOptions):
    ignore_if_exists: bool = False
    ignore_if_missing: bool = False
    deferred: bool = False
    num_replicas: int = 0


class ViewConsistency(str, Enum):
    UPDATE_AFTER = "update_after"
    REQUEST_PLUS = "request_plus"
    NOT_BOUNDED = "not_bounded"


@dataclass(frozen=True)
class ViewOptions(CallOptions):
    consistency: ViewConsistency = ViewConsistency.UPDATE_AFTER
    keys: tuple[Any, ...] = ()
    skip: int = 0
    limit: int | None = None
    reduce: bool = False
    development: bool = False
