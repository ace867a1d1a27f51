"""Fluent sub-document builders executed as one retried batch."""

from __future__ import annotations

import dataclasses
import logging as py_logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol, TypeVar

from pail.context import merge_options
from pail.errors import BuilderStateError, ErrorCode, PailError
from pail.handles import CollectionHandle
from pail.models import DocumentFlag, MultiResult, SubdocFlag, SubdocKind, SubdocOp
from pail.options import LookupInOptions, MutateInOptions
from pail.reasons import RetryStrategy

logger = py_logging.getLogger(__name__)

T = TypeVar("T")


class BatchExecutor(Protocol):
    def try_call(self, call: Callable[[CollectionHandle, RetryStrategy], T]) -> T: ...


def _reconcile(key: str, name: str, ours: Any, theirs: Any) -> Any:
    if ours and theirs and ours != theirs:
        raise PailError(
            f"Conflicting {name} for {key!r}: builder has {ours!r}, options have {theirs!r}.",
            code=ErrorCode.VALIDATION,
            hint=f"Pass {name} either to mutate_in() or in MutateInOptions, not both.",
        )
    return ours or theirs


def _path_flags(flags: SubdocFlag, *, create_parents: bool = False, xattr: bool = False) -> SubdocFlag:
    if create_parents:
        flags |= SubdocFlag.CREATE_PARENTS
    if xattr:
        flags |= SubdocFlag.XATTR
    return flags


class _SubdocBuilder:
    def __init__(self, executor: BatchExecutor, key: str) -> None:
        self._executor = executor
        self.key = key
        self._ops: list[SubdocOp] = []
        self._executed = False

    @property
    def ops(self) -> tuple[SubdocOp, ...]:
        return tuple(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    def _append(self, op: SubdocOp) -> None:
        if self._executed:
            raise BuilderStateError(
                f"Builder for {self.key!r} was already executed.",
                hint="Start a new builder for another request.",
            )
        self._ops.append(op)

    def _claim(self) -> tuple[SubdocOp, ...]:
        if self._executed:
            raise BuilderStateError(
                f"Builder for {self.key!r} was already executed.",
                hint="Start a new builder for another request.",
            )
        if not self._ops:
            raise BuilderStateError(
                f"Builder for {self.key!r} has no operations.",
                hint="Declare at least one path before execute().",
            )
        self._executed = True
        return tuple(self._ops)


class LookupInBuilder(_SubdocBuilder):
    def __init__(
        self,
        executor: BatchExecutor,
        key: str,
        options: LookupInOptions | None = None,
    ) -> None:
        super().__init__(executor, key)
        self.options = options

    def exists(self, path: str, flags: SubdocFlag = SubdocFlag.NONE, *, xattr: bool = False) -> LookupInBuilder:
        self._append(SubdocOp(path, SubdocKind.EXISTS, flags=_path_flags(flags, xattr=xattr)))
        return self

    def get(self, path: str, flags: SubdocFlag = SubdocFlag.NONE, *, xattr: bool = False) -> LookupInBuilder:
        self._append(SubdocOp(path, SubdocKind.GET, flags=_path_flags(flags, xattr=xattr)))
        return self

    def count(self, path: str, flags: SubdocFlag = SubdocFlag.NONE, *, xattr: bool = False) -> LookupInBuilder:
        self._append(SubdocOp(path, SubdocKind.COUNT, flags=_path_flags(flags, xattr=xattr)))
        return self

    def execute(self) -> MultiResult:
        ops = self._claim()
        logger.debug("Executing lookup_in key=%s ops=%s", self.key, len(ops))
        return self._executor.try_call(
            lambda handle, strategy: handle.lookup_in(
                self.key,
                ops,
                merge_options(self.options, strategy, LookupInOptions),
            )
        )


class MutateInBuilder(_SubdocBuilder):
    def __init__(
        self,
        executor: BatchExecutor,
        key: str,
        *,
        cas: int = 0,
        expiry: float = 0.0,
        document_flags: DocumentFlag = DocumentFlag.NONE,
        options: MutateInOptions | None = None,
    ) -> None:
        super().__init__(executor, key)
        if options is not None:
            cas = _reconcile(key, "cas", cas, options.cas)
            expiry = _reconcile(key, "expiry", expiry, options.expiry)
            document_flags |= DocumentFlag(options.document_flags)
        self.cas = cas
        self.expiry = expiry
        self.document_flags = document_flags
        self.options = options

    def _mutation(
        self,
        kind: SubdocKind,
        path: str,
        value: Any,
        flags: SubdocFlag,
        *,
        create_parents: bool = False,
        xattr: bool = False,
        multi: bool = False,
    ) -> MutateInBuilder:
        self._append(
            SubdocOp(
                path,
                kind,
                value=value,
                flags=_path_flags(flags, create_parents=create_parents, xattr=xattr),
                multi=multi,
            )
        )
        return self

    def insert(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.INSERT, path, value, flags, create_parents=create_parents, xattr=xattr)

    def upsert(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.UPSERT, path, value, flags, create_parents=create_parents, xattr=xattr)

    def replace(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.REPLACE, path, value, flags, xattr=xattr)

    def remove(self, path: str, flags: SubdocFlag = SubdocFlag.NONE, *, xattr: bool = False) -> MutateInBuilder:
        return self._mutation(SubdocKind.REMOVE, path, None, flags, xattr=xattr)

    def counter(
        self,
        path: str,
        delta: int,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise PailError(
                f"Counter delta must be an integer, got {delta!r}.",
                code=ErrorCode.VALIDATION,
            )
        return self._mutation(SubdocKind.COUNTER, path, delta, flags, create_parents=create_parents, xattr=xattr)

    def array_add_unique(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(
            SubdocKind.ARRAY_ADD_UNIQUE, path, value, flags, create_parents=create_parents, xattr=xattr
        )

    def array_append(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.ARRAY_APPEND, path, value, flags, create_parents=create_parents, xattr=xattr)

    def array_append_multi(
        self,
        path: str,
        values: Sequence[Any],
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(
            SubdocKind.ARRAY_APPEND,
            path,
            list(values),
            flags,
            create_parents=create_parents,
            xattr=xattr,
            multi=True,
        )

    def array_prepend(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.ARRAY_PREPEND, path, value, flags, create_parents=create_parents, xattr=xattr)

    def array_prepend_multi(
        self,
        path: str,
        values: Sequence[Any],
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        create_parents: bool = False,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(
            SubdocKind.ARRAY_PREPEND,
            path,
            list(values),
            flags,
            create_parents=create_parents,
            xattr=xattr,
            multi=True,
        )

    def array_insert(
        self,
        path: str,
        value: Any,
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.ARRAY_INSERT, path, value, flags, xattr=xattr)

    def array_insert_multi(
        self,
        path: str,
        values: Sequence[Any],
        flags: SubdocFlag = SubdocFlag.NONE,
        *,
        xattr: bool = False,
    ) -> MutateInBuilder:
        return self._mutation(SubdocKind.ARRAY_INSERT, path, list(values), flags, xattr=xattr, multi=True)

    def _options(self, strategy: RetryStrategy) -> MutateInOptions:
        # builder document settings always reach the wire, caller options or not
        return dataclasses.replace(
            merge_options(self.options, strategy, MutateInOptions),
            cas=self.cas,
            expiry=self.expiry,
            document_flags=int(self.document_flags),
        )

    def execute(self) -> MultiResult:
        ops = self._claim()
        logger.debug("Executing mutate_in key=%s ops=%s cas=%s", self.key, len(ops), self.cas)
        return self._executor.try_call(
            lambda handle, strategy: handle.mutate_in(self.key, ops, self._options(strategy))
        )
