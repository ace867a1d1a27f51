"""Sub-document operation records and batched results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any

from pail.errors import BuilderStateError, StoreError


class SubdocKind(str, Enum):
    EXISTS = "exists"
    GET = "get"
    COUNT = "count"
    INSERT = "insert"
    UPSERT = "upsert"
    REPLACE = "replace"
    REMOVE = "remove"
    COUNTER = "counter"
    ARRAY_ADD_UNIQUE = "array_add_unique"
    ARRAY_APPEND = "array_append"
    ARRAY_PREPEND = "array_prepend"
    ARRAY_INSERT = "array_insert"


LOOKUP_KINDS = frozenset({SubdocKind.EXISTS, SubdocKind.GET, SubdocKind.COUNT})


class SubdocFlag(IntFlag):
    NONE = 0
    CREATE_PARENTS = 0x01
    XATTR = 0x04


class DocumentFlag(IntFlag):
    NONE = 0
    MKDOC = 0x01
    ADD = 0x02
    ACCESS_DELETED = 0x04


@dataclass(frozen=True)
class SubdocOp:
    path: str
    kind: SubdocKind
    value: Any = None
    flags: SubdocFlag = SubdocFlag.NONE
    multi: bool = False

    @property
    def is_lookup(self) -> bool:
        return self.kind in LOOKUP_KINDS


@dataclass(frozen=True)
class SubdocEntry:
    path: str
    kind: SubdocKind
    value: Any = None
    error: StoreError | None = None


@dataclass
class MultiResult:
    """One entry per declared path, in declaration order."""

    cas: int = 0
    entries: list[SubdocEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[SubdocEntry]:
        return iter(self.entries)

    def _entry(self, index: int) -> SubdocEntry:
        if not 0 <= index < len(self.entries):
            raise BuilderStateError(
                f"No sub-document result at index {index}.",
                hint=f"Result holds {len(self.entries)} entries.",
            )
        return self.entries[index]

    def content(self, index: int) -> Any:
        entry = self._entry(index)
        if entry.error is not None:
            raise entry.error
        return entry.value

    def exists(self, index: int) -> bool:
        entry = self._entry(index)
        if entry.kind is SubdocKind.EXISTS and entry.error is None:
            return bool(entry.value)
        return entry.error is None

    def paths(self) -> list[str]:
        return [entry.path for entry in self.entries]


class BulkKind(str, Enum):
    GET = "get"
    INSERT = "insert"
    UPSERT = "upsert"
    REPLACE = "replace"
    REMOVE = "remove"
    TOUCH = "touch"


@dataclass(eq=False)
class BulkOp:
    """One document operation in a bulk batch.

    The client fills ``result`` and ``error`` in place; ``cas`` is an input. A batch that
    fails transiently is resubmitted whole, so every op is reset first.
    """

    kind: BulkKind
    key: str
    value: Any = None
    cas: int = 0
    expiry: float = 0.0
    result: Any = None
    error: StoreError | None = None

    def reset(self) -> None:
        self.result = None
        self.error = None

    @property
    def ok(self) -> bool:
        return self.error is None
