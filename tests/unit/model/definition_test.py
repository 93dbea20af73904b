from __future__ import annotations

from types import MappingProxyType

import pytest

from component_resolution_engine.model.definition import (
    Definition,
    DefinitionCycleError,
    OptionsMapping,
    as_options_mapping,
    check_acyclic,
)

# ==============================================================================
# BRANCH LEDGER: definition.py
# ==============================================================================
#
# C001 = OptionsMapping
# C002 = Definition
# C000F001 = as_options_mapping
# C000F002 = check_acyclic
#
# C001M001B0001: top-level set/del bumps version
# C001M001B0002: nested mutation does not bump version
# C000F001B0001: OptionsMapping passed -> same object
# C000F001B0002: dict passed -> wrapped by reference
# C000F001B0003: other mapping -> copied
# C000F001B0004: None -> empty
# C002M001B0001: own_options writes through to extend_options before first merge
# C002M002B0001: name from own options, then raw options
# C000F002B0001: terminating chain -> ok
# C000F002B0002: cycle -> DefinitionCycleError with the visited chain
# ==============================================================================


def test_version_bumps_on_top_level_writes():
    # C001M001B0001
    opts = OptionsMapping()
    assert opts.version == 0
    opts["a"] = 1
    opts["a"] = 2
    del opts["a"]
    assert opts.version == 3
    assert len(opts) == 0


def test_nested_mutation_keeps_version():
    # C001M001B0002
    opts = OptionsMapping({"methods": {}})
    opts["methods"]["greet"] = print
    assert opts.version == 0


def test_as_options_mapping_variants():
    # C000F001B0001..C000F001B0004
    existing = OptionsMapping()
    assert as_options_mapping(existing) is existing

    raw = {"a": 1}
    wrapped = as_options_mapping(raw)
    wrapped["b"] = 2
    assert raw == {"a": 1, "b": 2}

    proxy_source = {"c": 3}
    copied = as_options_mapping(MappingProxyType(proxy_source))
    copied["d"] = 4
    assert "d" not in proxy_source

    assert len(as_options_mapping(None)) == 0


def test_extend_options_are_copied_and_written_through():
    # C002M001B0001
    raw = {"data": None}
    definition = Definition(raw)
    definition.own_options["template"] = "<div/>"

    assert "template" not in raw
    assert definition.extend_options["template"] == "<div/>"


def test_cids_are_unique():
    assert len({Definition().cid for _ in range(5)}) == 5


def test_name_and_depth():
    # C002M002B0001
    base = Definition({})
    mid = Definition({"name": "card"}, super_ref=base)
    leaf = Definition({}, super_ref=mid)

    assert base.is_root and not leaf.is_root
    assert mid.name == "card"
    assert leaf.name is None
    assert leaf.depth == 2
    assert list(leaf.ancestors()) == [mid, base]
    assert "name='card'" in repr(mid)


def test_name_ignores_non_strings():
    assert Definition({"name": 7}).name is None
    assert Definition({"name": ""}).name is None


def test_super_ref_is_read_only():
    base = Definition({})
    child = Definition({}, super_ref=base)
    with pytest.raises(AttributeError):
        child.super_ref = None  # type: ignore[misc]


def test_check_acyclic_accepts_chain():
    # C000F002B0001
    check_acyclic(Definition({}, super_ref=Definition({})))


def test_check_acyclic_detects_cycle():
    # C000F002B0002
    a = Definition({})
    b = Definition({}, super_ref=a)
    # Only reachable by poking the private slot.
    a._super_ref = b

    with pytest.raises(DefinitionCycleError) as ei:
        check_acyclic(a)

    assert f"cid={a.cid}" in str(ei.value)
    assert ei.value.chain == (a, b)
