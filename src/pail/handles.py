"""Capabilities the retry layer needs from the connected store client.

The retry layer never owns a connection. It borrows one of these handles for
the duration of a single attempt.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from pail.models import BulkOp, MultiResult, SubdocOp
from pail.options import (
    BulkOptions,
    CounterOptions,
    ExistsOptions,
    GetOptions,
    IndexOptions,
    InsertOptions,
    LookupInOptions,
    MutateInOptions,
    QueryOptions,
    RemoveOptions,
    ReplaceOptions,
    TouchOptions,
    UpsertOptions,
    ViewOptions,
)


class ClusterHandle(Protocol):
    def query(self, statement: str, options: QueryOptions) -> Iterable[Any]: ...


class CollectionHandle(Protocol):
    def get(self, key: str, options: GetOptions) -> Any: ...

    def exists(self, key: str, options: ExistsOptions) -> bool: ...

    def insert(self, key: str, value: Any, options: InsertOptions) -> int: ...

    def upsert(self, key: str, value: Any, options: UpsertOptions) -> int: ...

    def replace(self, key: str, value: Any, options: ReplaceOptions) -> int: ...

    def remove(self, key: str, options: RemoveOptions) -> int: ...

    def touch(self, key: str, expiry: float, options: TouchOptions) -> int: ...

    def increment(self, key: str, delta: int, options: CounterOptions) -> int: ...

    def decrement(self, key: str, delta: int, options: CounterOptions) -> int: ...

    def lookup_in(self, key: str, ops: Sequence[SubdocOp], options: LookupInOptions) -> MultiResult: ...

    def mutate_in(self, key: str, ops: Sequence[SubdocOp], options: MutateInOptions) -> MultiResult: ...

    def do(self, ops: Sequence[BulkOp], options: BulkOptions) -> None: ...

    def view_query(self, design_doc: str, view: str, options: ViewOptions) -> Iterable[Any]: ...


class QueryIndexManagerHandle(Protocol):
    def create_primary_index(self, bucket: str, options: IndexOptions) -> None: ...

    def create_index(self, bucket: str, name: str, fields: Sequence[str], options: IndexOptions) -> None: ...

    def drop_index(self, bucket: str, name: str, options: IndexOptions) -> None: ...

    def get_all_indexes(self, bucket: str, options: IndexOptions) -> list[Any]: ...

    def build_deferred_indexes(self, bucket: str, options: IndexOptions) -> list[str]: ...
