"""Retry contexts binding one budget to one logical store call."""

from __future__ import annotations

import dataclasses
import logging as py_logging
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from pail.budget import RetryBudget
from pail.classify import DEFAULT_CLASSIFIER, Classifier, FailureReason
from pail.errors import ErrorCode, PailError, RetryLimitBreachedError
from pail.handles import ClusterHandle, CollectionHandle, QueryIndexManagerHandle
from pail.logging import retry_fields
from pail.options import CallOptions
from pail.reasons import RetryAction, RetryReason, RetryRequest, RetryStrategy

logger = py_logging.getLogger(__name__)

H = TypeVar("H")
T = TypeVar("T")
OptionsT = TypeVar("OptionsT", bound=CallOptions)


class RetryState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SLEEPING = "sleeping"
    SUCCEEDED = "succeeded"
    PERMANENT_FAILURE = "permanent_failure"
    EXHAUSTED = "exhausted"


class RetryContext(Generic[H, T]):
    """Outer retry loop plus the strategy callback used by the client engine.

    ``run`` re-issues the whole operation when an attempt fails transiently.
    ``retry_after`` is handed to the client as the call's retry strategy so
    that physical retries inside one attempt draw from the same budget.
    """

    def __init__(
        self,
        budget: RetryBudget,
        operation: Callable[[H], T],
        *,
        classifier: Classifier = DEFAULT_CLASSIFIER,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.budget = budget
        self.operation = operation
        self.classifier = classifier
        self.sleep = sleep
        self._state = RetryState.IDLE
        self._invocations = 0

    @property
    def state(self) -> RetryState:
        return self._state

    @property
    def invocations(self) -> int:
        return self._invocations

    def retry_after(self, request: RetryRequest | None, reason: RetryReason) -> RetryAction:
        return self.budget.retry_after(request, reason)

    def _fields(self) -> Mapping[str, Any]:
        return retry_fields(self._invocations, self.budget.attempts, self.budget.limit)

    def run(self, handle: H) -> T:
        if self._state is not RetryState.IDLE:
            raise PailError(
                "Retry context was already used.",
                code=ErrorCode.BUILDER_STATE,
                hint="Create a fresh retry context for every logical call.",
            )

        while True:
            self._state = RetryState.ATTEMPTING
            self._invocations += 1
            logger.debug("Store call started", extra=self._fields())
            try:
                result = self.operation(handle)
            except Exception as exc:
                reason = self.classifier(exc)
                if reason is FailureReason.PERMANENT:
                    self._state = RetryState.PERMANENT_FAILURE
                    logger.debug("Permanent store failure error=%r", exc, extra=self._fields())
                    raise
                if reason is FailureReason.ALWAYS_RETRY:
                    logger.debug("Redirecting store call error=%r", exc, extra=self._fields())
                elif self.budget.consume():
                    logger.warning("Transient store failure error=%r", exc, extra=self._fields())
                else:
                    self._state = RetryState.EXHAUSTED
                    logger.error("Store call exhausted retries error=%r", exc, extra=self._fields())
                    raise RetryLimitBreachedError(exc, attempts=self._invocations) from exc
                self._state = RetryState.SLEEPING
                self.sleep(self.budget.delay)
                continue
            self._state = RetryState.SUCCEEDED
            return result


class ClusterRetryContext(RetryContext[ClusterHandle, T]):
    pass


class CollectionRetryContext(RetryContext[CollectionHandle, T]):
    pass


class QueryIndexManagerRetryContext(RetryContext[QueryIndexManagerHandle, T]):
    pass


def new_cluster_retry_context(
    limit: int,
    delay: float,
    delegate: RetryStrategy | None,
    fn: Callable[[ClusterHandle], T],
    *,
    classifier: Classifier = DEFAULT_CLASSIFIER,
    sleep: Callable[[float], None] = time.sleep,
) -> ClusterRetryContext[T]:
    return ClusterRetryContext(RetryBudget(limit, delay, delegate), fn, classifier=classifier, sleep=sleep)


def new_collection_retry_context(
    limit: int,
    delay: float,
    delegate: RetryStrategy | None,
    fn: Callable[[CollectionHandle], T],
    *,
    classifier: Classifier = DEFAULT_CLASSIFIER,
    sleep: Callable[[float], None] = time.sleep,
) -> CollectionRetryContext[T]:
    return CollectionRetryContext(RetryBudget(limit, delay, delegate), fn, classifier=classifier, sleep=sleep)


def new_query_index_manager_retry_context(
    limit: int,
    delay: float,
    delegate: RetryStrategy | None,
    fn: Callable[[QueryIndexManagerHandle], T],
    *,
    classifier: Classifier = DEFAULT_CLASSIFIER,
    sleep: Callable[[float], None] = time.sleep,
) -> QueryIndexManagerRetryContext[T]:
    return QueryIndexManagerRetryContext(
        RetryBudget(limit, delay, delegate),
        fn,
        classifier=classifier,
        sleep=sleep,
    )


def merge_options(
    options: OptionsT | None,
    strategy: RetryStrategy,
    factory: Callable[..., OptionsT],
) -> OptionsT:
    """Shallow copy of the caller's options with the retry strategy swapped in."""
    if options is None:
        return factory(retry_strategy=strategy)
    return dataclasses.replace(options, retry_strategy=strategy)
