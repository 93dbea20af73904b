from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Protocol

if TYPE_CHECKING:
    from component_resolution_engine.model.instance import Instance


class MergeService(Protocol):
    """
    Combines two option mappings key by key.

    Must be pure and deterministic, and must return a new mapping on every call:
    the resolver uses the identity of the result as its change signal.
    """

    def merge(
        self,
        parent: Mapping[str, Any],
        child: Mapping[str, Any],
        instance: Instance | None = None,
    ) -> dict[str, Any]: ...


class MergeStrategy(ABC):
    """
    Base contract for combining the parent and child value of a single option key.

    Subclasses declare ``strategy_name``; option keys are bound to strategies by
    name, so names must be unique across builtins and entry points.

    ``MISSING`` is passed for a side that does not define the key.
    """

    strategy_name: ClassVar[str] = ""

    @abstractmethod
    def merge(
        self,
        parent_value: Any,
        child_value: Any,
        *,
        key: str,
        instance: Instance | None = None,
    ) -> Any:
        raise NotImplementedError


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
