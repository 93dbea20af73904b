from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from component_resolution_engine.internal.diagnostics import (
    format_component_name,
    warn,
)
from component_resolution_engine.internal.fast_path import build_internal
from component_resolution_engine.internal.hooks import LifecycleHookInvoker
from component_resolution_engine.internal.resolver import OptionsResolver
from component_resolution_engine.model.definition import Definition
from component_resolution_engine.model.instance import (
    EventChannel,
    Instance,
    LifecyclePhase,
    next_uid,
)
from component_resolution_engine.model.options import (
    ABSTRACT,
    IS_INTERNAL,
    MOUNT_TARGET,
    PARENT,
    PARENT_LISTENERS,
    PARENT_VNODE,
    RENDER,
    RENDER_CHILDREN,
    STATIC_RENDER_FNS,
    InternalComponentOptions,
    LifecycleHook,
    ParentVNode,
)
from component_resolution_engine.services import InstantiationServices

DEFAULT_SLOT = "default"


def resolve_slots(
    children: Sequence[Any] | None, context: Instance | None
) -> dict[str, list[Any]]:
    """
    Group render children into named slots.

    A child lands in a named slot only if it carries a ``slot`` name and was
    rendered in the same context as the instance's placeholder; everything else
    goes to the default slot.
    """
    slots: dict[str, list[Any]] = {}
    for child in children or ():
        name = getattr(child, "slot", None)
        if name and getattr(child, "context", None) is context:
            slots.setdefault(name, []).append(child)
        else:
            slots.setdefault(DEFAULT_SLOT, []).append(child)
    return slots


@dataclass(frozen=True, slots=True)
class InstantiationPipeline:
    """
    Creates instances through the fixed initialization sequence.

    Order (every instance, root or internal):
      uid, observation flag, effective options, relations, events, render
      context, before_create, injections, state, provisions, created, mount.

    Any exception raised by a step aborts the remaining steps for that instance
    and propagates.
    """

    resolver: OptionsResolver
    services: InstantiationServices
    hooks: LifecycleHookInvoker = field(default_factory=LifecycleHookInvoker)

    def create(
        self, definition: Definition, options: Mapping[str, Any] | None = None
    ) -> Instance:
        """
        Create an instance of ``definition``.

        With ``is_internal`` set and a ``parent_vnode`` present, creation is
        routed to the fast path; the placeholder's definition is instantiated.
        """
        options = dict(options or {})
        if options.pop(IS_INTERNAL, False):
            parent_vnode: ParentVNode | None = options.get(PARENT_VNODE)
            if parent_vnode is not None:
                return self.create_internal(
                    InternalComponentOptions(
                        parent_vnode=parent_vnode,
                        parent=options.get(PARENT),
                        render=options.get(RENDER),
                        static_render_fns=options.get(STATIC_RENDER_FNS),
                    )
                )
            warn(
                self.services.config,
                "internal creation requested without a parent_vnode; "
                "falling back to the general merge",
            )

        instance, started = self._begin(definition)
        instance.options = self.services.merge.merge(
            self.resolver.resolve(definition), options, instance
        )
        self._init(instance, started)
        return instance

    def create_internal(self, internal: InternalComponentOptions) -> Instance:
        definition = internal.parent_vnode.component_options.definition
        resolved = self.resolver.repo.get(definition)
        if resolved is None:
            warn(
                self.services.config,
                f"internal instance requested for unresolved definition cid={definition.cid}; "
                "resolving it now",
                internal.parent,
            )
            resolved = self.resolver.resolve(definition)

        instance, started = self._begin(definition)
        instance.is_internal = True
        instance.options = build_internal(resolved, internal)
        self._init(instance, started)
        return instance

    # -------------------------
    # steps
    # -------------------------

    def _begin(self, definition: Definition) -> tuple[Instance, float]:
        instance = Instance(definition)
        instance.uid = next_uid()
        instance.skip_observation = True
        return instance, time.perf_counter()

    def _init(self, instance: Instance, started: float) -> None:
        self._init_relations(instance)
        self._init_events(instance)
        self._init_render(instance)

        instance.phase = LifecyclePhase.BEFORE_CREATE
        self.hooks.invoke(instance, LifecycleHook.BEFORE_CREATE)
        self.services.injections.resolve_injections(instance)
        self.services.state.init_state(instance)
        self.services.provisions.resolve_provisions(instance)
        instance.phase = LifecyclePhase.CREATED
        self.hooks.invoke(instance, LifecycleHook.CREATED)

        if self.services.config.performance:
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            logging.debug(
                f"{format_component_name(instance)} init: uid={instance.uid} "
                f"took {elapsed_ms:.3f}ms"
            )

        target = instance.options.get(MOUNT_TARGET)
        if target is not None:
            instance.phase = LifecyclePhase.MOUNT_REQUESTED
            self.services.mount.mount(instance, target)

    @staticmethod
    def _init_relations(instance: Instance) -> None:
        options = instance.options
        parent: Instance | None = options.get(PARENT)
        if parent is not None and not options.get(ABSTRACT):
            # Abstract instances (e.g. keep-alive wrappers) are skipped as parents.
            while parent.options.get(ABSTRACT) and parent.parent is not None:
                parent = parent.parent
            parent.children.append(instance)

        instance.parent = parent
        instance.root = parent.root if parent is not None else instance
        instance.children = []
        instance.refs = {}
        instance.is_mounted = False
        instance.is_destroyed = False
        instance.is_being_destroyed = False

    @staticmethod
    def _init_events(instance: Instance) -> None:
        instance.events = EventChannel()
        instance.has_hook_event = False
        listeners: Mapping[str, Any] | None = instance.options.get(PARENT_LISTENERS)
        for event, handler in (listeners or {}).items():
            handlers = handler if isinstance(handler, (list, tuple)) else (handler,)
            for h in handlers:
                instance.subscribe(event, h)

    def _init_render(self, instance: Instance) -> None:
        parent_vnode = instance.options.get(PARENT_VNODE)
        instance.vnode = None
        instance.static_trees = None
        instance.parent_vnode = parent_vnode
        instance.render_context = parent_vnode.context if parent_vnode is not None else None
        instance.slots = resolve_slots(
            instance.options.get(RENDER_CHILDREN), instance.render_context
        )
        instance.scoped_slots = {}
        instance.create_element = partial(self.services.elements.create_element, instance)
