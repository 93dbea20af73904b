from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from component_resolution_engine.model.definition import Definition

REPOSITORY_ENTRYPOINT_GROUP = "component_resolution_engine.repositories"


def seal(options: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    Immutable top-level snapshot of an option mapping.

    Values are shared by reference; only the key -> value binding is frozen.
    """
    return MappingProxyType(dict(options))


@dataclass(frozen=True, slots=True)
class DefinitionRecord:
    """
    Cached resolution state of one definition.

    Records are replaced whole, never mutated, so a reader always observes a
    consistent (resolved, super seen, sealed) triple.

    Attributes:
        resolved_options: the merged mapping last produced for the definition.
        super_options_seen: the parent's resolved mapping observed at that merge,
            or None for a root definition.
        sealed_options: top-level snapshot of ``resolved_options``; None until
            ``snapshot_sealed`` ran for this record.
        sealed_version: version token of the live options when sealed.
    """

    resolved_options: Mapping[str, Any]
    super_options_seen: Mapping[str, Any] | None = None
    sealed_options: Mapping[str, Any] | None = None
    sealed_version: int = -1


class DefinitionRepository(ABC):
    @abstractmethod
    def get(self, definition: Definition) -> Mapping[str, Any] | None:
        """
        Return the cached resolved options, or None if never resolved.
        """

    @abstractmethod
    def record(self, definition: Definition) -> DefinitionRecord | None: ...

    @abstractmethod
    def put(
        self,
        definition: Definition,
        merged: Mapping[str, Any],
        *,
        super_options: Mapping[str, Any] | None = None,
    ) -> None: ...

    @abstractmethod
    def snapshot_sealed(
        self, definition: Definition, *, version: int = -1
    ) -> Mapping[str, Any]:
        """
        Seal the currently stored resolved options and return the snapshot.
        """

    def guard(self, definition: Definition) -> AbstractContextManager[Any]:
        """
        Held by the resolver across the whole check-then-rewrite of the record of
        ``definition``.

        The default holds nothing. Repositories shared between threads return a
        per-definition lock so concurrent resolutions of one definition run one at
        a time.
        """
        return nullcontext()

    def close(self) -> None:
        """
        Cleanup hook for repositories.

        The default implementation is a no-op. Override in repositories
        that hold resources.
        """
        return None
