from __future__ import annotations

from collections import ChainMap
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from component_resolution_engine.strategies import MISSING, MergeStrategy

if TYPE_CHECKING:
    from component_resolution_engine.model.instance import Instance


def _absent(value: Any) -> bool:
    return value is MISSING or value is None


class OverrideStrategy(MergeStrategy):
    """
    Child value wins unless the child leaves the key undefined.
    """

    strategy_name = "override"

    def merge(
        self,
        parent_value: Any,
        child_value: Any,
        *,
        key: str,
        instance: Instance | None = None,
    ) -> Any:
        return parent_value if _absent(child_value) else child_value


class ExtendStrategy(MergeStrategy):
    """
    Shallow mapping merge, child keys win. Used for props, methods, computed, inject.
    """

    strategy_name = "extend"

    def merge(
        self,
        parent_value: Any,
        child_value: Any,
        *,
        key: str,
        instance: Instance | None = None,
    ) -> Any:
        if _absent(parent_value):
            return child_value
        if _absent(child_value):
            return parent_value
        if isinstance(parent_value, Mapping) and isinstance(child_value, Mapping):
            return {**parent_value, **child_value}
        return child_value


def _as_handler_list(value: Any) -> list[Callable[..., Any]]:
    if _absent(value):
        return []
    if callable(value):
        return [value]
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return list(value)
    raise TypeError(f"hook handlers must be callables, got {type(value).__name__}")


class HookConcatStrategy(MergeStrategy):
    """
    Parent handlers first, then child handlers, each handler at most once.

    De-duplication keeps a late-modified list that already contains the parent's
    handlers from registering them twice when it is folded back and re-merged.
    """

    strategy_name = "hooks"

    def merge(
        self,
        parent_value: Any,
        child_value: Any,
        *,
        key: str,
        instance: Instance | None = None,
    ) -> Any:
        combined = _as_handler_list(parent_value) + _as_handler_list(child_value)
        if not combined:
            return MISSING
        out: list[Callable[..., Any]] = []
        for handler in combined:
            if not any(handler is h for h in out):
                out.append(handler)
        return out


class AssetChainStrategy(MergeStrategy):
    """
    Layers the child's registry over the parent's.

    The result is a new ChainMap whose first map is a private copy of the child
    entries, so registering into it never touches an ancestor, while lookups fall
    through to ancestor registries (including entries added to them later).
    """

    strategy_name = "assets"

    def merge(
        self,
        parent_value: Any,
        child_value: Any,
        *,
        key: str,
        instance: Instance | None = None,
    ) -> Any:
        own: dict[str, Any] = {} if _absent(child_value) else dict(child_value)
        if _absent(parent_value):
            return ChainMap(own)
        return ChainMap(own, parent_value)
