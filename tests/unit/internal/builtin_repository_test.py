from __future__ import annotations

import threading
from types import MappingProxyType

import pytest

from component_resolution_engine.internal import builtin_repository as uut
from component_resolution_engine.model.definition import Definition
from component_resolution_engine.repository import DefinitionRecord, seal

# ==============================================================================
# BRANCH LEDGER: builtin_repository (C000)
# ==============================================================================
#
# Classes:
#   - InMemoryDefinitionRepository (C001)
#
# C001M001B0001: get on unknown definition -> None
# C001M001B0002: get after put -> stored mapping (same object)
# C001M002B0001: put replaces the whole record; sealed state is reset
# C001M003B0001: snapshot_sealed on stored record -> proxy of resolved options
# C001M003B0002: snapshot_sealed on unknown definition -> seals live options
# C001M004B0001: close clears all records
# C001M005B0001: context manager closes on exit
# C001M006B0001: unlocked repository -> guard holds nothing
# C001M006B0002: thread_safe -> one re-entrant lock per definition, dropped on close
# ==============================================================================


@pytest.fixture
def repo() -> uut.InMemoryDefinitionRepository:
    return uut.InMemoryDefinitionRepository()


def test_get_unknown_returns_none(repo):
    # C001M001B0001
    assert repo.get(Definition({})) is None
    assert repo.record(Definition({})) is None


def test_put_then_get_keeps_identity(repo):
    # C001M001B0002
    base = Definition({})
    child = Definition({}, super_ref=base)
    merged = {"a": 1}
    super_options = base.own_options

    repo.put(child, merged, super_options=super_options)

    assert repo.get(child) is merged
    rec = repo.record(child)
    assert rec == DefinitionRecord(resolved_options=merged, super_options_seen=super_options)
    assert len(repo) == 1


def test_put_resets_sealed_state(repo):
    # C001M002B0001
    definition = Definition({})
    repo.put(definition, {"a": 1})
    repo.snapshot_sealed(definition, version=3)

    repo.put(definition, {"a": 2})

    rec = repo.record(definition)
    assert rec.sealed_options is None
    assert rec.sealed_version == -1


def test_snapshot_sealed_is_read_only_copy(repo):
    # C001M003B0001
    definition = Definition({})
    resolved = {"a": [1]}
    repo.put(definition, resolved)

    sealed = repo.snapshot_sealed(definition, version=7)

    assert isinstance(sealed, MappingProxyType)
    assert sealed["a"] is resolved["a"]
    with pytest.raises(TypeError):
        sealed["a"] = 2  # type: ignore[index]
    resolved["b"] = 2
    assert "b" not in sealed

    rec = repo.record(definition)
    assert rec.sealed_options is sealed
    assert rec.sealed_version == 7
    assert rec.resolved_options is resolved


def test_snapshot_sealed_unknown_definition_seals_live_options(repo):
    # C001M003B0002
    definition = Definition({"x": 1})

    sealed = repo.snapshot_sealed(definition)

    assert dict(sealed) == {"x": 1}
    assert repo.get(definition) is definition.own_options


def test_close_clears_records(repo):
    # C001M004B0001
    repo.put(Definition({}), {})
    repo.close()
    assert len(repo) == 0


def test_context_manager_closes(repo):
    # C001M005B0001
    definition = Definition({})
    with repo as r:
        assert r is repo
        r.put(definition, {})
    assert repo.get(definition) is None


def test_seal_is_top_level_only():
    nested = {"k": "v"}
    sealed = seal({"nested": nested})
    nested["k2"] = "v2"
    assert sealed["nested"] is nested


# ------------------------------------------------------------------------------
# guards
# ------------------------------------------------------------------------------


def test_unlocked_guard_holds_nothing(repo):
    # C001M006B0001
    definition = Definition({})

    assert repo.thread_safe is False
    with repo.guard(definition), repo.guard(definition):
        repo.put(definition, {"a": 1})
    assert repo.get(definition) == {"a": 1}


def test_thread_safe_guard_is_per_definition():
    # C001M006B0002
    repo = uut.InMemoryDefinitionRepository(thread_safe=True)
    first, second = Definition({}), Definition({})

    lock = repo.guard(first)
    assert repo.guard(first) is lock
    assert repo.guard(second) is not lock

    held_elsewhere: list[bool] = []
    with lock:
        # Re-entrant for the owner: sealing takes the same guard.
        repo.put(first, {"a": 1})
        repo.snapshot_sealed(first, version=1)

        def _try() -> None:
            held_elsewhere.append(repo.guard(first).acquire(blocking=False))

        worker = threading.Thread(target=_try)
        worker.start()
        worker.join()

    assert held_elsewhere == [False]
    assert repo.record(first).sealed_version == 1

    repo.close()
    assert repo.guard(first) is not lock
