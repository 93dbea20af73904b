from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, replace
from typing import Any, Mapping

from component_resolution_engine.model.definition import Definition
from component_resolution_engine.repository import (
    DefinitionRecord,
    DefinitionRepository,
    seal,
)


@dataclass(slots=True)
class InMemoryDefinitionRepository(DefinitionRepository):
    """
    Process-lifetime definition cache.

    Properties:
    - Keyed by definition identity (definitions hash by id).
    - Records are frozen and swapped whole on every write, so ``record`` always
      hands out a consistent (resolved, super seen, sealed) triple.
    - Without ``thread_safe`` nothing is locked: resolution and mutation are
      expected to happen on one thread of control.
    - With ``thread_safe`` every definition gets its own re-entrant lock, handed
      out by ``guard``; sealing takes it too.
    """

    _records: dict[Definition, DefinitionRecord]
    _locks: dict[Definition, threading.RLock] | None
    _locks_mutex: threading.Lock

    def __init__(self, *, thread_safe: bool = False) -> None:
        self._records = {}
        self._locks = {} if thread_safe else None
        self._locks_mutex = threading.Lock()

    def __enter__(self) -> InMemoryDefinitionRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._records)

    @property
    def thread_safe(self) -> bool:
        return self._locks is not None

    def close(self) -> None:
        self._records.clear()
        if self._locks is not None:
            with self._locks_mutex:
                self._locks.clear()

    # -------------------------
    # repository API
    # -------------------------

    def guard(self, definition: Definition) -> AbstractContextManager[Any]:
        if self._locks is None:
            return nullcontext()
        with self._locks_mutex:
            lock = self._locks.get(definition)
            if lock is None:
                lock = self._locks[definition] = threading.RLock()
        return lock

    def get(self, definition: Definition) -> Mapping[str, Any] | None:
        rec = self._records.get(definition)
        return rec.resolved_options if rec is not None else None

    def record(self, definition: Definition) -> DefinitionRecord | None:
        return self._records.get(definition)

    def put(
        self,
        definition: Definition,
        merged: Mapping[str, Any],
        *,
        super_options: Mapping[str, Any] | None = None,
    ) -> None:
        self._records[definition] = DefinitionRecord(
            resolved_options=merged, super_options_seen=super_options
        )

    def snapshot_sealed(
        self, definition: Definition, *, version: int = -1
    ) -> Mapping[str, Any]:
        with self.guard(definition):
            rec = self._records.get(definition)
            if rec is None:
                # Total: sealing an unknown definition seals its live options.
                rec = DefinitionRecord(resolved_options=definition.own_options)
            sealed = seal(rec.resolved_options)
            self._records[definition] = replace(
                rec, sealed_options=sealed, sealed_version=version
            )
        return sealed
