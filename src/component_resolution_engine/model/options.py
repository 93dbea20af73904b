from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, TypedDict

if TYPE_CHECKING:
    from component_resolution_engine.model.definition import Definition
    from component_resolution_engine.model.instance import Instance

# -------------------------
# option keys
# -------------------------

NAME = "name"
PARENT = "parent"
PARENT_VNODE = "parent_vnode"
PROPS_DATA = "props_data"
PARENT_LISTENERS = "parent_listeners"
RENDER_CHILDREN = "render_children"
COMPONENT_TAG = "component_tag"
RENDER = "render"
STATIC_RENDER_FNS = "static_render_fns"
MOUNT_TARGET = "mount_target"
IS_INTERNAL = "is_internal"
ABSTRACT = "abstract"
INJECT = "inject"
PROVIDE = "provide"
PROPS = "props"
METHODS = "methods"
DATA = "data"
COMPUTED = "computed"

COMPONENTS = "components"
DIRECTIVES = "directives"
FILTERS = "filters"
ASSET_TYPES: tuple[str, ...] = (COMPONENTS, DIRECTIVES, FILTERS)


class LifecycleHook(str, Enum):
    """
    Closed set of lifecycle hook names an option mapping may register handlers for.
    """

    BEFORE_CREATE = "before_create"
    CREATED = "created"
    BEFORE_MOUNT = "before_mount"
    MOUNTED = "mounted"
    BEFORE_UPDATE = "before_update"
    UPDATED = "updated"
    BEFORE_DESTROY = "before_destroy"
    DESTROYED = "destroyed"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    ERROR_CAPTURED = "error_captured"
    SERVER_PREFETCH = "server_prefetch"


class ConfigurationOptions(TypedDict, total=False):
    """
    Creation options the core itself interprets.

    Any other key is an ordinary option and is merged like the definition's own.
    """

    is_internal: bool
    parent: Instance
    mount_target: Any
    render: Callable[..., Any]
    static_render_fns: Sequence[Callable[..., Any]]
    name: str


# -------------------------
# render-pass inputs
# -------------------------


@dataclass(frozen=True, slots=True)
class VNodeComponentOptions:
    """
    What a parent's render pass captured about a child component placeholder.
    """

    definition: Definition
    tag: str | None = None
    props_data: Mapping[str, Any] | None = None
    listeners: Mapping[str, Any] | None = None
    children: Sequence[Any] | None = None


@dataclass(frozen=True, slots=True)
class ParentVNode:
    """
    Placeholder node in the parent's render output that the child instance replaces.

    ``context`` is the instance whose render pass produced the placeholder.
    """

    component_options: VNodeComponentOptions
    context: Instance | None = None
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class InternalComponentOptions:
    parent_vnode: ParentVNode
    parent: Instance | None = None
    render: Callable[..., Any] | None = None
    static_render_fns: Sequence[Callable[..., Any]] | None = None


# -------------------------
# fast-path option struct
# -------------------------

_RENDER_KEYS = frozenset((RENDER, STATIC_RENDER_FNS))


@dataclass(frozen=True, slots=True)
class InternalOptions:
    """
    Fixed set of hot fields copied eagerly for an internally created instance.

    ``render`` and ``static_render_fns`` only shadow the definition when
    ``has_render`` is set; they are copied together or not at all.
    """

    parent: Instance | None
    parent_vnode: ParentVNode
    props_data: Mapping[str, Any] | None
    parent_listeners: Mapping[str, Any] | None
    render_children: Sequence[Any] | None
    component_tag: str | None
    render: Callable[..., Any] | None = None
    static_render_fns: Sequence[Callable[..., Any]] | None = None
    has_render: bool = False

    def local_keys(self) -> tuple[str, ...]:
        return tuple(
            f.name
            for f in fields(self)
            if f.name != "has_render"
            and (self.has_render or f.name not in _RENDER_KEYS)
        )


class InstanceOptions(Mapping[str, Any]):
    """
    Effective options of an internal instance: local struct first, then the
    definition's resolved options.
    """

    __slots__ = ("local", "fallback", "_local_keys")

    def __init__(self, local: InternalOptions, fallback: Mapping[str, Any]) -> None:
        self.local = local
        self.fallback = fallback
        self._local_keys = frozenset(local.local_keys())

    def __getitem__(self, key: str) -> Any:
        if key in self._local_keys:
            return getattr(self.local, key)
        return self.fallback[key]

    def __contains__(self, key: object) -> bool:
        return key in self._local_keys or key in self.fallback

    def __iter__(self) -> Iterator[str]:
        yield from self.local.local_keys()
        for key in self.fallback:
            if key not in self._local_keys:
                yield key

    def __len__(self) -> int:
        return len(self._local_keys) + sum(
            1 for key in self.fallback if key not in self._local_keys
        )

    def __repr__(self) -> str:
        return f"InstanceOptions(local={self.local!r})"
