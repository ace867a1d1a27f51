"""Per-call retry budget with a fixed inter-attempt delay."""

from __future__ import annotations

import logging as py_logging
import threading

from pail.errors import ErrorCode, PailError
from pail.reasons import STOP, RetryAction, RetryReason, RetryRequest, RetryStrategy

logger = py_logging.getLogger(__name__)


class RetryBudget:
    """Attempt counter, limit and delay for exactly one logical call.

    ``limit`` is the number of attempts allowed after the first one. The
    counter is only ever incremented. Increments are atomic because the
    client engine may report failed sub-requests from several threads.
    """

    def __init__(
        self,
        limit: int,
        delay: float,
        delegate: RetryStrategy | None = None,
    ) -> None:
        if limit < 0:
            raise PailError(
                f"Invalid retry limit: {limit}",
                code=ErrorCode.CONFIG_ERROR,
                hint="Use a non-negative retry limit.",
            )
        if delay < 0:
            raise PailError(
                f"Invalid retry delay: {delay}",
                code=ErrorCode.CONFIG_ERROR,
                hint="Use a non-negative delay in seconds.",
            )
        self.limit = limit
        self.delay = delay
        self.delegate = delegate
        self._attempts = 0
        self._lock = threading.Lock()

    @property
    def attempts(self) -> int:
        return self._attempts

    def _increment(self) -> int:
        with self._lock:
            self._attempts += 1
            return self._attempts

    def consume(self) -> bool:
        """Count one failed attempt; False once the limit is breached."""
        return self._increment() <= self.limit

    def retry_after(self, request: RetryRequest | None, reason: RetryReason) -> RetryAction:
        if self.delegate is not None:
            if not reason.always_retry:
                self._increment()
            return self.delegate.retry_after(request, reason)
        if reason.always_retry:
            logger.debug("Always-retry reason=%s, redirecting after %ss", reason.value, self.delay)
            return RetryAction.after(self.delay)
        tries = self._increment()
        if tries > self.limit:
            logger.debug("Retry limit breached tries=%s limit=%s reason=%s", tries, self.limit, reason.value)
            return STOP
        return RetryAction.after(self.delay)
