from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from component_resolution_engine.model.options import (
    InstanceOptions,
    InternalComponentOptions,
    InternalOptions,
)


def build_internal(
    resolved_options: Mapping[str, Any], internal: InternalComponentOptions
) -> InstanceOptions:
    """
    Effective options for an instance created by a parent's render pass.

    Only the hot fields are copied; everything else reads through to the
    definition's resolved options. No merge runs here, so the result matches the
    general path only as long as none of the copied keys needs a non-trivial
    merge strategy.

    ``render`` and ``static_render_fns`` are copied together or not at all. A
    render function passed without static trees copies ``None`` for them, which
    shadows the definition's own ``static_render_fns``; the general path would
    keep the inherited value instead.
    """
    parent_vnode = internal.parent_vnode
    vnode_options = parent_vnode.component_options

    has_render = internal.render is not None
    local = InternalOptions(
        parent=internal.parent,
        parent_vnode=parent_vnode,
        props_data=vnode_options.props_data,
        parent_listeners=vnode_options.listeners,
        render_children=vnode_options.children,
        component_tag=vnode_options.tag,
        render=internal.render if has_render else None,
        static_render_fns=internal.static_render_fns if has_render else None,
        has_render=has_render,
    )
    return InstanceOptions(local, resolved_options)
