from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from component_resolution_engine.internal.builtin_strategies import OverrideStrategy
from component_resolution_engine.model.options import (
    ASSET_TYPES,
    COMPUTED,
    INJECT,
    METHODS,
    PROPS,
    LifecycleHook,
)
from component_resolution_engine.strategies import MISSING, MergeStrategy

if TYPE_CHECKING:
    from component_resolution_engine.model.instance import Instance

DEFAULT_STRATEGY_NAME = "override"


def default_key_bindings() -> dict[str, str]:
    """
    Option key -> strategy name bindings used when the config does not rebind a key.
    """
    bindings: dict[str, str] = {hook.value: "hooks" for hook in LifecycleHook}
    bindings.update({asset: "assets" for asset in ASSET_TYPES})
    bindings.update({key: "extend" for key in (PROPS, METHODS, INJECT, COMPUTED)})
    return bindings


@dataclass(frozen=True, slots=True)
class StrategyTableMergeService:
    """
    MergeService that dispatches every option key to a MergeStrategy.

    Keys are visited in parent order, then keys only the child defines. A strategy
    returning ``MISSING`` drops the key from the result.
    """

    strategies_by_key: Mapping[str, MergeStrategy]
    default: MergeStrategy = field(default_factory=OverrideStrategy)

    def strategy_for(self, key: str) -> MergeStrategy:
        return self.strategies_by_key.get(key, self.default)

    def merge(
        self,
        parent: Mapping[str, Any],
        child: Mapping[str, Any],
        instance: Instance | None = None,
    ) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for key in parent:
            self._merge_key(merged, key, parent, child, instance)
        for key in child:
            if key not in parent:
                self._merge_key(merged, key, parent, child, instance)
        logging.debug(
            f"merged options: parent_keys={len(parent)} child_keys={len(child)} "
            f"result_keys={len(merged)}"
        )
        return merged

    def _merge_key(
        self,
        merged: dict[str, Any],
        key: str,
        parent: Mapping[str, Any],
        child: Mapping[str, Any],
        instance: Instance | None,
    ) -> None:
        value = self.strategy_for(key).merge(
            parent.get(key, MISSING),
            child.get(key, MISSING),
            key=key,
            instance=instance,
        )
        if value is not MISSING:
            merged[key] = value
