from __future__ import annotations

import asyncio
from dataclasses import fields, replace
from typing import Any, Mapping, MutableMapping, Sequence

from .base import RecordKind


class MemoryStore:
    """In-process record store used for development and tests.

    Conditional updates run under a single lock so the check and the write are
    atomic with respect to other coroutines.
    """

    def __init__(self) -> None:
        self._collections: dict[RecordKind, MutableMapping[str, Any]] = {kind: {} for kind in RecordKind}
        self._lock = asyncio.Lock()

    async def ensure_schema(self) -> None:
        return None

    async def get(self, kind: RecordKind, record_id: str) -> Any | None:
        return self._collections[kind].get(record_id)

    async def find(self, kind: RecordKind, field: str, value: Any) -> Sequence[Any]:
        self._check_field(kind, field)
        return [record for record in self._collections[kind].values() if getattr(record, field) == value]

    async def scan(self, kind: RecordKind) -> Sequence[Any]:
        return list(self._collections[kind].values())

    async def insert(self, kind: RecordKind, record: Any) -> None:
        async with self._lock:
            collection = self._collections[kind]
            if record.id in collection:
                raise KeyError(f"Duplicate {kind.value} id {record.id}")
            collection[record.id] = record

    async def update(
        self,
        kind: RecordKind,
        record_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Any | None:
        for name in (*changes, *(expected or {})):
            self._check_field(kind, name)
        async with self._lock:
            collection = self._collections[kind]
            current = collection.get(record_id)
            if current is None:
                return None
            for name, value in (expected or {}).items():
                if getattr(current, name) != value:
                    return None
            updated = replace(current, **changes)
            collection[record_id] = updated
            return updated

    async def delete(self, kind: RecordKind, record_id: str) -> bool:
        async with self._lock:
            return self._collections[kind].pop(record_id, None) is not None

    async def close(self) -> None:
        return None

    @staticmethod
    def _check_field(kind: RecordKind, name: str) -> None:
        if name not in {item.name for item in fields(kind.record_type)}:
            raise AttributeError(f"{kind.record_type.__name__} has no field {name!r}")
