from __future__ import annotations

import re
from typing import Any, Mapping

from packaging.utils import canonicalize_name

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def normalize_asset_name(name: str) -> str:
    """
    Normalize an asset name for lookup.

    Camel and Pascal case humps are split with ``-`` first, then packaging's
    canonicalize_name case-folds and collapses runs of ``-``, ``_`` and ``.`` to a
    single ``-``. ``MyButton``, ``myButton``, ``my_button`` and ``MY_BUTTON`` all
    become ``my-button``.
    """
    return canonicalize_name(_WORD_BOUNDARY.sub("-", name))


def resolve_asset(options: Mapping[str, Any], kind: str, name: str) -> Any | None:
    """
    Look up ``name`` in the ``kind`` registry of an option mapping.

    An exact key wins; otherwise the first registered key whose normalized form
    matches. Registries may be ChainMaps, so iteration covers inherited entries.
    """
    registry = options.get(kind)
    if not registry:
        return None
    if name in registry:
        return registry[name]
    wanted = normalize_asset_name(name)
    for key in registry:
        if normalize_asset_name(key) == wanted:
            return registry[key]
    return None
