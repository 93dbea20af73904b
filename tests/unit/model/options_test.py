from __future__ import annotations

import pytest

from component_resolution_engine.model.definition import Definition
from component_resolution_engine.model.options import (
    ASSET_TYPES,
    InstanceOptions,
    InternalOptions,
    LifecycleHook,
    ParentVNode,
    VNodeComponentOptions,
)


@pytest.fixture
def vnode() -> ParentVNode:
    return ParentVNode(component_options=VNodeComponentOptions(definition=Definition({})))


def _local(vnode: ParentVNode, **kwargs) -> InternalOptions:
    return InternalOptions(
        parent=None,
        parent_vnode=vnode,
        props_data=None,
        parent_listeners=None,
        render_children=None,
        component_tag=None,
        **kwargs,
    )


def test_lifecycle_hook_values_are_option_keys():
    assert LifecycleHook.BEFORE_CREATE == "before_create"
    assert LifecycleHook("created") is LifecycleHook.CREATED
    assert len(LifecycleHook) == 12
    assert set(ASSET_TYPES) == {"components", "directives", "filters"}


def test_local_keys_exclude_render_unless_flagged(vnode):
    assert "render" not in _local(vnode).local_keys()
    keys = _local(vnode, render=print, static_render_fns=(), has_render=True).local_keys()
    assert {"render", "static_render_fns"} <= set(keys)
    assert "has_render" not in keys


def test_local_fields_shadow_fallback(vnode):
    opts = InstanceOptions(
        _local(vnode, render=print, static_render_fns=(), has_render=True),
        {"render": repr, "component_tag": "fallback", "extra": 1},
    )

    assert opts["render"] is print
    # None locals still shadow: the hot field set is fixed.
    assert opts["component_tag"] is None
    assert opts["extra"] == 1
    assert list(opts).count("render") == 1


def test_missing_key_raises_key_error(vnode):
    opts = InstanceOptions(_local(vnode), {})
    with pytest.raises(KeyError):
        opts["nope"]


def test_vnode_structs_are_frozen(vnode):
    with pytest.raises(AttributeError):
        vnode.context = None  # type: ignore[misc]
