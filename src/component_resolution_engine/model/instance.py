from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from component_resolution_engine.model.definition import Definition
    from component_resolution_engine.model.options import ParentVNode

# Process-wide; never reset. next() on itertools.count is atomic under the GIL.
_uids = itertools.count()

HOOK_EVENT_PREFIX = "hook:"


def next_uid() -> int:
    return next(_uids)


class LifecyclePhase(Enum):
    INITIALIZING = "initializing"
    BEFORE_CREATE = "before_create"
    CREATED = "created"
    MOUNT_REQUESTED = "mount_requested"


class EventChannel:
    """
    Subscriber table for a single instance.

    Handlers for one event run in subscription order.
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[..., Any]]] = {}

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        self._subscribers.setdefault(event, []).append(handler)

    def handlers(self, event: str) -> tuple[Callable[..., Any], ...]:
        return tuple(self._subscribers.get(event, ()))

    def publish(self, event: str, *args: Any) -> None:
        for handler in self.handlers(event):
            handler(*args)

    def __contains__(self, event: object) -> bool:
        return bool(self._subscribers.get(event))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return sum(len(v) for v in self._subscribers.values())


class Instance:
    """
    A live object created from a Definition by the instantiation pipeline.

    The pipeline fills the attributes step by step; collaborators (injection
    resolver, state initializer, provision resolver, mount trigger) add their own
    results on top. Nothing here is reactive.
    """

    def __init__(self, definition: Definition) -> None:
        self.definition = definition
        self.uid: int = -1
        self.is_internal = False
        self.skip_observation = False
        self.phase = LifecyclePhase.INITIALIZING
        self.options: Mapping[str, Any] = {}
        self.render_proxy: Instance = self

        # relations
        self.parent: Instance | None = None
        self.root: Instance = self
        self.children: list[Instance] = []
        self.refs: dict[str, Any] = {}
        self.is_mounted = False
        self.is_destroyed = False
        self.is_being_destroyed = False

        # events
        self.events = EventChannel()
        self.has_hook_event = False

        # render context
        self.vnode: Any = None
        self.static_trees: list[Any] | None = None
        self.parent_vnode: ParentVNode | None = None
        self.render_context: Instance | None = None
        self.slots: dict[str, list[Any]] = {}
        self.scoped_slots: dict[str, Any] = {}
        self.create_element: Callable[..., Any] | None = None

        # collaborator results
        self.injected: Mapping[str, Any] = {}
        self.props: dict[str, Any] = {}
        self.methods: dict[str, Callable[..., Any]] = {}
        self.data: dict[str, Any] = {}
        self.provided: Mapping[str, Any] | None = None
        self.mount_target: Any = None

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        if event.startswith(HOOK_EVENT_PREFIX):
            self.has_hook_event = True
        self.events.subscribe(event, handler)

    @property
    def name(self) -> str | None:
        name = self.options.get("name")
        if name is None:
            name = self.options.get("component_tag")
        return name if isinstance(name, str) and name else None

    def __repr__(self) -> str:
        return f"Instance(uid={self.uid}, name={self.name!r}, phase={self.phase.value})"
