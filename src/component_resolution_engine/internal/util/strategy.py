from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from importlib.metadata import EntryPoint, entry_points
from typing import Any

from component_resolution_engine.strategies import MergeStrategy

BUILTIN_STRATEGY_MODULE = "component_resolution_engine.internal.builtin_strategies"
STRATEGY_ENTRYPOINT_GROUP = "component_resolution_engine.merge_strategies"


class StrategyConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class _StrategyClassInfo:
    strategy_cls: type[MergeStrategy]
    origin: str  # "builtin" | "entrypoint"


# --------------------------------------------------------------------------- #
# Discovery
# --------------------------------------------------------------------------- #


def _iter_module_objects(module_name: str) -> Iterable[Any]:
    if not module_name:
        return
    module = importlib.import_module(module_name)
    yield from vars(module).values()
    # Packages contribute their submodules as well.
    if hasattr(module, "__path__"):
        for _finder, mod_name, _ispkg in pkgutil.walk_packages(
            module.__path__, module.__name__ + "."
        ):
            yield from vars(importlib.import_module(mod_name)).values()


def _iter_entrypoint_objects(group: str) -> Iterable[Any]:
    if not group:
        return
    ep: EntryPoint
    for ep in entry_points().select(group=group):
        yield ep.load()


def _strategy_classes(objects: Iterable[Any]) -> list[type[MergeStrategy]]:
    out: list[type[MergeStrategy]] = []
    for obj in objects:
        if (
            inspect.isclass(obj)
            and issubclass(obj, MergeStrategy)
            and not inspect.isabstract(obj)
            and obj not in out
        ):
            out.append(obj)
    return out


def _strategy_name_for_class(strategy_cls: type[MergeStrategy]) -> str:
    name = getattr(strategy_cls, "strategy_name", None)
    if isinstance(name, str) and name:
        return name
    return strategy_cls.__name__


def discover_strategy_classes(
    *, strategy_module: str, strategy_entrypoint_group: str
) -> dict[str, _StrategyClassInfo]:
    """
    Returns mapping strategy_name -> class info.

    Duplicate strategy_name across builtin/entrypoint is an error.
    """
    by_name: dict[str, _StrategyClassInfo] = {}

    for cls in _strategy_classes(_iter_module_objects(strategy_module)):
        name = _strategy_name_for_class(cls)
        if name in by_name:
            raise StrategyConfigError(f"duplicate strategy_name discovered: '{name}'")
        by_name[name] = _StrategyClassInfo(strategy_cls=cls, origin="builtin")

    for cls in _strategy_classes(_iter_entrypoint_objects(strategy_entrypoint_group)):
        name = _strategy_name_for_class(cls)
        if name in by_name:
            raise StrategyConfigError(f"duplicate strategy_name discovered: '{name}'")
        by_name[name] = _StrategyClassInfo(strategy_cls=cls, origin="entrypoint")

    return by_name


# --------------------------------------------------------------------------- #
# Binding
# --------------------------------------------------------------------------- #


def bind_strategies(
    *,
    discovered: Mapping[str, _StrategyClassInfo],
    key_bindings: Mapping[str, str],
) -> dict[str, MergeStrategy]:
    """
    Instantiate one strategy per referenced name and map option keys onto them.

    Raises StrategyConfigError when a binding names a strategy that was not discovered.
    """
    instances: dict[str, MergeStrategy] = {}
    by_key: dict[str, MergeStrategy] = {}

    for key, strategy_name in key_bindings.items():
        if not isinstance(strategy_name, str) or not strategy_name:
            raise StrategyConfigError(
                f"option key '{key}': strategy name must be a non-empty string"
            )
        info = discovered.get(strategy_name)
        if info is None:
            raise StrategyConfigError(
                f"option key '{key}' is bound to unknown strategy '{strategy_name}'. "
                f"available={sorted(discovered)}"
            )
        if strategy_name not in instances:
            instances[strategy_name] = info.strategy_cls()
            logging.debug(
                f"merge strategy instantiated: {strategy_name} origin={info.origin}"
            )
        by_key[key] = instances[strategy_name]

    return by_key


def load_strategies(
    *,
    key_bindings: Mapping[str, str],
    strategy_module: str = BUILTIN_STRATEGY_MODULE,
    strategy_entrypoint_group: str = STRATEGY_ENTRYPOINT_GROUP,
) -> dict[str, MergeStrategy]:
    """
    Discover -> bind. Returns option key -> strategy instance.
    """
    discovered = discover_strategy_classes(
        strategy_module=strategy_module,
        strategy_entrypoint_group=strategy_entrypoint_group,
    )
    return bind_strategies(discovered=discovered, key_bindings=key_bindings)
