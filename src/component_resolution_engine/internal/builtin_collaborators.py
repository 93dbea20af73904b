from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType, MethodType
from typing import Any

from component_resolution_engine.config import EngineConfig
from component_resolution_engine.internal.diagnostics import warn
from component_resolution_engine.model.instance import Instance
from component_resolution_engine.model.options import (
    DATA,
    INJECT,
    METHODS,
    PROPS,
    PROPS_DATA,
    PROVIDE,
)


def normalize_inject(inject: Any) -> dict[str, dict[str, Any]]:
    """
    Normalize an ``inject`` option to ``{local_key: {"from": provide_key, ...}}``.

    Accepted shapes:
      - sequence of keys: ``["theme"]``
      - mapping of local key -> provide key: ``{"t": "theme"}``
      - mapping of local key -> spec: ``{"t": {"from": "theme", "default": "dark"}}``
    """
    if inject is None:
        return {}
    if isinstance(inject, Mapping):
        out: dict[str, dict[str, Any]] = {}
        for key, spec in inject.items():
            if isinstance(spec, Mapping):
                out[key] = {"from": key, **spec}
            else:
                out[key] = {"from": spec}
        return out
    if isinstance(inject, Sequence) and not isinstance(inject, (str, bytes)):
        return {key: {"from": key} for key in inject}
    raise TypeError(
        f'invalid value for option "inject": expected a sequence or mapping, '
        f"got {type(inject).__name__}"
    )


@dataclass(frozen=True, slots=True)
class PlainInjectionResolver:
    """
    Looks each injection up in the ``provided`` mappings of the instance and its
    ancestors, nearest first.

    The lookup starts at the instance itself; it finds nothing there because
    provisions are resolved after state, so an instance never injects its own
    provisions.
    """

    config: EngineConfig = field(default_factory=EngineConfig)

    def resolve_injections(self, instance: Instance) -> None:
        result: dict[str, Any] = {}
        for key, spec in normalize_inject(instance.options.get(INJECT)).items():
            provide_key = spec["from"]
            source: Instance | None = instance
            while source is not None:
                if source.provided is not None and provide_key in source.provided:
                    result[key] = source.provided[provide_key]
                    break
                source = source.parent
            else:
                if "default" in spec:
                    default = spec["default"]
                    result[key] = default(instance) if callable(default) else default
                else:
                    warn(self.config, f'Injection "{key}" not found', instance)
        instance.injected = MappingProxyType(result)


@dataclass(frozen=True, slots=True)
class PlainStateInitializer:
    """
    Non-reactive state setup: props, methods, data.

    Dependency tracking (computed, watch) belongs to a reactive engine plugged in
    as a StateInitializer of its own.
    """

    def init_state(self, instance: Instance) -> None:
        options = instance.options
        props_data: Mapping[str, Any] = options.get(PROPS_DATA) or {}
        declared = options.get(PROPS)
        if declared is None:
            instance.props = dict(props_data)
        else:
            instance.props = {k: props_data[k] for k in declared if k in props_data}

        methods: Mapping[str, Any] = options.get(METHODS) or {}
        instance.methods = {
            name: MethodType(fn, instance) for name, fn in methods.items()
        }

        data = options.get(DATA)
        if callable(data):
            data = data(instance)
        if data is not None and not isinstance(data, Mapping):
            raise TypeError(
                f"data functions should return a mapping, got {type(data).__name__}"
            )
        instance.data = dict(data or {})


@dataclass(frozen=True, slots=True)
class PlainProvisionResolver:
    def resolve_provisions(self, instance: Instance) -> None:
        provide = instance.options.get(PROVIDE)
        if provide is None:
            return
        if callable(provide):
            provide = provide(instance)
        instance.provided = MappingProxyType(dict(provide))


@dataclass(frozen=True, slots=True)
class UnconfiguredMountTrigger:
    config: EngineConfig = field(default_factory=EngineConfig)

    def mount(self, instance: Instance, target: Any) -> None:
        instance.mount_target = target
        warn(
            self.config,
            f"mount target {target!r} supplied but no mount trigger is configured",
            instance,
        )


@dataclass(frozen=True, slots=True)
class UnconfiguredElementFactory:
    def create_element(self, instance: Instance, *args: Any, **kwargs: Any) -> Any:
        logging.debug(f"create_element called without a factory: uid={instance.uid}")
        raise RuntimeError("no element factory is configured for this engine")
