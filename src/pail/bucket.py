"""Retrying wrappers around cluster, collection and index-manager handles."""

from __future__ import annotations

import logging as py_logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from pail.classify import DEFAULT_CLASSIFIER, Classifier
from pail.config import RetrySettings
from pail.context import (
    ClusterRetryContext,
    CollectionRetryContext,
    QueryIndexManagerRetryContext,
    RetryContext,
    merge_options,
)
from pail.handles import ClusterHandle, CollectionHandle, QueryIndexManagerHandle
from pail.models import BulkOp, DocumentFlag
from pail.options import (
    BulkOptions,
    CounterOptions,
    ExistsOptions,
    GetOptions,
    IndexOptions,
    InsertOptions,
    LookupInOptions,
    MutateInOptions,
    QueryConsistency,
    QueryOptions,
    RemoveOptions,
    ReplaceOptions,
    TouchOptions,
    UpsertOptions,
    ViewOptions,
)
from pail.reasons import RetryStrategy
from pail.subdoc import LookupInBuilder, MutateInBuilder

logger = py_logging.getLogger(__name__)

H = TypeVar("H")
T = TypeVar("T")


class _Retrying(Generic[H]):
    _context_type: type[RetryContext[Any, Any]] = RetryContext

    def __init__(
        self,
        handle: H,
        settings: RetrySettings | None = None,
        *,
        classifier: Classifier = DEFAULT_CLASSIFIER,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.handle = handle
        self.settings = settings or RetrySettings()
        self.classifier = classifier
        self.sleep = sleep

    def try_call(self, call: Callable[[H, RetryStrategy], T]) -> T:
        """Run ``call`` under a fresh budget; the context doubles as its retry strategy."""
        context: RetryContext[H, T] = self._context_type(
            self.settings.new_budget(),
            lambda handle: call(handle, context),
            classifier=self.classifier,
            sleep=self.sleep,
        )
        return context.run(self.handle)

    def try_op(self, fn: Callable[[H], T]) -> T:
        return self.try_call(lambda handle, _strategy: fn(handle))


class Pail(_Retrying[CollectionHandle]):
    """Collection wrapper that retries connection failures."""

    _context_type = CollectionRetryContext

    def get(self, key: str, options: GetOptions | None = None) -> Any:
        return self.try_call(lambda c, s: c.get(key, merge_options(options, s, GetOptions)))

    def exists(self, key: str, options: ExistsOptions | None = None) -> bool:
        return self.try_call(lambda c, s: c.exists(key, merge_options(options, s, ExistsOptions)))

    def insert(self, key: str, value: Any, options: InsertOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.insert(key, value, merge_options(options, s, InsertOptions)))

    def upsert(self, key: str, value: Any, options: UpsertOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.upsert(key, value, merge_options(options, s, UpsertOptions)))

    def replace(self, key: str, value: Any, options: ReplaceOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.replace(key, value, merge_options(options, s, ReplaceOptions)))

    def remove(self, key: str, options: RemoveOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.remove(key, merge_options(options, s, RemoveOptions)))

    def touch(self, key: str, expiry: float, options: TouchOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.touch(key, expiry, merge_options(options, s, TouchOptions)))

    def increment(self, key: str, delta: int = 1, options: CounterOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.increment(key, delta, merge_options(options, s, CounterOptions)))

    def decrement(self, key: str, delta: int = 1, options: CounterOptions | None = None) -> int:
        return self.try_call(lambda c, s: c.decrement(key, delta, merge_options(options, s, CounterOptions)))

    def do(self, ops: Iterable[BulkOp], options: BulkOptions | None = None) -> list[BulkOp]:
        """Submit a bulk batch; a transient failure resubmits every op."""
        batch = list(ops)

        def submit(collection: CollectionHandle, strategy: RetryStrategy) -> list[BulkOp]:
            for op in batch:
                op.reset()
            collection.do(batch, merge_options(options, strategy, BulkOptions))
            return batch

        logger.debug("Submitting bulk batch ops=%s", len(batch))
        return self.try_call(submit)

    def view_query(self, design_doc: str, view: str, options: ViewOptions | None = None) -> list[Any]:
        # rows are drained inside the attempt, as for queries
        return self.try_call(
            lambda c, s: list(c.view_query(design_doc, view, merge_options(options, s, ViewOptions)))
        )

    def lookup_in(self, key: str, options: LookupInOptions | None = None) -> LookupInBuilder:
        return LookupInBuilder(self, key, options)

    def mutate_in(
        self,
        key: str,
        *,
        cas: int = 0,
        expiry: float = 0.0,
        document_flags: DocumentFlag = DocumentFlag.NONE,
        options: MutateInOptions | None = None,
    ) -> MutateInBuilder:
        return MutateInBuilder(
            self,
            key,
            cas=cas,
            expiry=expiry,
            document_flags=document_flags,
            options=options,
        )


def _query_parameters(params: Sequence[Any]) -> list[Any] | dict[str, Any]:
    if not params:
        return []
    if isinstance(params[0], Mapping):
        if len(params) > 1:
            logger.warning("Ignoring %s query values after named parameters", len(params) - 1)
        return dict(params[0])
    return list(params)


class RetryingCluster(_Retrying[ClusterHandle]):
    _context_type = ClusterRetryContext

    def query(self, statement: str, options: QueryOptions | None = None) -> list[Any]:
        # Rows are drained inside the attempt so a broken stream re-issues the query.
        return self.try_call(lambda c, s: list(c.query(statement, merge_options(options, s, QueryOptions))))

    def query_with_parameters(
        self,
        statement: str,
        consistency: QueryConsistency,
        params: list[Any] | dict[str, Any] | None = None,
    ) -> list[Any]:
        if isinstance(params, dict):
            options = QueryOptions(consistency=consistency, named_parameters=dict(params))
        else:
            options = QueryOptions(consistency=consistency, positional_parameters=list(params or []))
        logger.debug("Running query consistency=%s statement=%s", consistency.value, statement)
        return self.query(statement, options)

    def query_not_bounded(self, statement: str, *params: Any) -> list[Any]:
        return self.query_with_parameters(statement, QueryConsistency.NOT_BOUNDED, _query_parameters(params))

    def query_request_plus(self, statement: str, *params: Any) -> list[Any]:
        return self.query_with_parameters(statement, QueryConsistency.REQUEST_PLUS, _query_parameters(params))

    def query_statement_plus(self, statement: str, *params: Any) -> list[Any]:
        return self.query_with_parameters(statement, QueryConsistency.STATEMENT_PLUS, _query_parameters(params))


class RetryingQueryIndexManager(_Retrying[QueryIndexManagerHandle]):
    _context_type = QueryIndexManagerRetryContext

    def create_primary_index(self, bucket: str, options: IndexOptions | None = None) -> None:
        self.try_call(lambda m, s: m.create_primary_index(bucket, merge_options(options, s, IndexOptions)))

    def create_index(
        self,
        bucket: str,
        name: str,
        fields: Sequence[str],
        options: IndexOptions | None = None,
    ) -> None:
        self.try_call(lambda m, s: m.create_index(bucket, name, list(fields), merge_options(options, s, IndexOptions)))

    def drop_index(self, bucket: str, name: str, options: IndexOptions | None = None) -> None:
        self.try_call(lambda m, s: m.drop_index(bucket, name, merge_options(options, s, IndexOptions)))

    def get_all_indexes(self, bucket: str, options: IndexOptions | None = None) -> list[Any]:
        return self.try_call(lambda m, s: list(m.get_all_indexes(bucket, merge_options(options, s, IndexOptions))))

    def build_deferred_indexes(self, bucket: str, options: IndexOptions | None = None) -> list[str]:
        return self.try_call(
            lambda m, s: list(m.build_deferred_indexes(bucket, merge_options(options, s, IndexOptions)))
        )
