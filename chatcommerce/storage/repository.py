"""Keyed record repositories holding JSON-compatible dicts."""

import copy
import logging
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class Repository(Protocol):
    """Per-record atomic get/put over one kind of entity."""

    def get(self, key: str) -> Optional[Record]: ...

    def put(self, key: str, record: Record) -> None: ...

    def delete(self, key: str) -> None: ...

    def values(self) -> list[Record]: ...


class InMemoryRepository:
    """
    Process-local repository.

    Records are deep-copied in and out, so callers can never mutate
    stored state without a put.
    """

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    def get(self, key: str) -> Optional[Record]:
        record = self._records.get(key)
        return copy.deepcopy(record) if record is not None else None

    def put(self, key: str, record: Record) -> None:
        self._records[key] = copy.deepcopy(record)

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def values(self) -> list[Record]:
        return [copy.deepcopy(self._records[k]) for k in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)
