from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from component_resolution_engine.config import EngineConfig
from component_resolution_engine.internal.merge import (
    StrategyTableMergeService,
    default_key_bindings,
)
from component_resolution_engine.internal.util.strategy import (
    BUILTIN_STRATEGY_MODULE,
    STRATEGY_ENTRYPOINT_GROUP,
    load_strategies,
)
from component_resolution_engine.model.instance import Instance
from component_resolution_engine.strategies import MergeService

# -------------------------
# collaborator contracts
# -------------------------


class InjectionResolver(Protocol):
    """
    Populates ``instance.injected``. Runs before the state initializer.
    """

    def resolve_injections(self, instance: Instance) -> None: ...


class StateInitializer(Protocol):
    """
    Establishes the instance's state-bearing keys. Runs after injections and
    before provisions.
    """

    def init_state(self, instance: Instance) -> None: ...


class ProvisionResolver(Protocol):
    def resolve_provisions(self, instance: Instance) -> None: ...


class MountTrigger(Protocol):
    def mount(self, instance: Instance, target: Any) -> None: ...


class ElementFactory(Protocol):
    def create_element(self, instance: Instance, *args: Any, **kwargs: Any) -> Any: ...


# -------------------------
# service wiring
# -------------------------


def _builtin_collaborators(config: EngineConfig) -> dict[str, Any]:
    from component_resolution_engine.internal.builtin_collaborators import (
        PlainInjectionResolver,
        PlainProvisionResolver,
        PlainStateInitializer,
        UnconfiguredElementFactory,
        UnconfiguredMountTrigger,
    )

    return {
        "injections": PlainInjectionResolver(config=config),
        "state": PlainStateInitializer(),
        "provisions": PlainProvisionResolver(),
        "mount": UnconfiguredMountTrigger(config=config),
        "elements": UnconfiguredElementFactory(),
    }


@dataclass(frozen=True, slots=True)
class InstantiationServices:
    """
    Wires the merge service and the external collaborators the pipeline calls.

    The pipeline should depend on this object, not on concrete collaborators.
    """

    merge: MergeService
    injections: InjectionResolver
    state: StateInitializer
    provisions: ProvisionResolver
    mount: MountTrigger
    elements: ElementFactory
    config: EngineConfig = field(default_factory=EngineConfig)


def build_services(
    *,
    merge: MergeService,
    config: EngineConfig | None = None,
    injections: InjectionResolver | None = None,
    state: StateInitializer | None = None,
    provisions: ProvisionResolver | None = None,
    mount: MountTrigger | None = None,
    elements: ElementFactory | None = None,
) -> InstantiationServices:
    config = config or EngineConfig()
    defaults = _builtin_collaborators(config)
    return InstantiationServices(
        merge=merge,
        injections=injections or defaults["injections"],
        state=state or defaults["state"],
        provisions=provisions or defaults["provisions"],
        mount=mount or defaults["mount"],
        elements=elements or defaults["elements"],
        config=config,
    )


# :: FeatureFlow | type=feature_start | name=service_loading
def load_services(
    *,
    config: EngineConfig | None = None,
    strategy_module: str = BUILTIN_STRATEGY_MODULE,
    strategy_entrypoint_group: str = STRATEGY_ENTRYPOINT_GROUP,
    **collaborators: Any,
) -> InstantiationServices:
    """
    Discover -> bind merge strategies, then wire the collaborators.

    Key bindings start from the builtin defaults; ``config.merge_strategies``
    overrides them key by key. Collaborators not passed in fall back to the
    plain builtins.
    """
    config = config or EngineConfig()
    key_bindings: Mapping[str, str] = {
        **default_key_bindings(),
        **config.merge_strategies,
    }
    strategies_by_key = load_strategies(
        key_bindings=key_bindings,
        strategy_module=strategy_module,
        strategy_entrypoint_group=strategy_entrypoint_group,
    )
    return build_services(
        merge=StrategyTableMergeService(strategies_by_key=strategies_by_key),
        config=config,
        **collaborators,
    )
