from __future__ import annotations

from typing import Any

import pytest

from component_resolution_engine import services as uut
from component_resolution_engine.config import EngineConfig
from component_resolution_engine.internal.builtin_collaborators import (
    PlainInjectionResolver,
    PlainProvisionResolver,
    PlainStateInitializer,
    UnconfiguredElementFactory,
    UnconfiguredMountTrigger,
)
from component_resolution_engine.internal.builtin_strategies import (
    ExtendStrategy,
    HookConcatStrategy,
    OverrideStrategy,
)
from component_resolution_engine.internal.merge import StrategyTableMergeService
from unit.helpers.fakes import CountingMergeService, EventLog, RecordingState

# ==============================================================================
# CASE MATRIX
# ==============================================================================
#
# C000F001 = build_services
# C000F002 = load_services
#
# C000F001B0001: no collaborators -> plain builtins sharing the config
# C000F001B0002: collaborator passed -> used as is
# C000F002B0001: default bindings applied
# C000F002B0002: config bindings override defaults key by key
# C000F002B0003: collaborators forwarded
# ==============================================================================


def test_build_services_defaults():
    # C000F001B0001
    config = EngineConfig(silent=True)
    merge = CountingMergeService()

    services = uut.build_services(merge=merge, config=config)

    assert services.merge is merge
    assert services.config is config
    assert isinstance(services.injections, PlainInjectionResolver)
    assert services.injections.config is config
    assert isinstance(services.state, PlainStateInitializer)
    assert isinstance(services.provisions, PlainProvisionResolver)
    assert isinstance(services.mount, UnconfiguredMountTrigger)
    assert isinstance(services.elements, UnconfiguredElementFactory)


def test_build_services_keeps_given_collaborators():
    # C000F001B0002
    state = RecordingState(EventLog())
    services = uut.build_services(merge=CountingMergeService(), state=state)
    assert services.state is state
    assert services.config == EngineConfig()


def _strategy(services: uut.InstantiationServices, key: str) -> Any:
    assert isinstance(services.merge, StrategyTableMergeService)
    return services.merge.strategy_for(key)


def test_load_services_default_bindings():
    # C000F002B0001
    services = uut.load_services(strategy_entrypoint_group="")

    assert isinstance(_strategy(services, "created"), HookConcatStrategy)
    assert isinstance(_strategy(services, "methods"), ExtendStrategy)
    assert isinstance(_strategy(services, "anything_else"), OverrideStrategy)


def test_load_services_config_overrides():
    # C000F002B0002
    config = EngineConfig(merge_strategies={"data": "extend", "methods": "override"})

    services = uut.load_services(config=config, strategy_entrypoint_group="")

    assert isinstance(_strategy(services, "data"), ExtendStrategy)
    assert isinstance(_strategy(services, "methods"), OverrideStrategy)
    assert isinstance(_strategy(services, "created"), HookConcatStrategy)
    assert services.config is config


def test_load_services_forwards_collaborators():
    # C000F002B0003
    state = RecordingState(EventLog())
    services = uut.load_services(strategy_entrypoint_group="", state=state)
    assert services.state is state


def test_services_are_frozen():
    services = uut.build_services(merge=CountingMergeService())
    with pytest.raises(AttributeError):
        services.merge = None  # type: ignore[misc]
