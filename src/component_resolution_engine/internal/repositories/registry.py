from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any, Literal, Mapping, Protocol

from component_resolution_engine.internal.builtin_repository import (
    InMemoryDefinitionRepository,
)
from component_resolution_engine.repository import (
    REPOSITORY_ENTRYPOINT_GROUP,
    DefinitionRepository,
)

DEFAULT_REPOSITORY_ID = "memory"

RepositoryOrigin = Literal["builtin", "entrypoint"]


class RepositoryRegistryError(RuntimeError):
    pass


class RepositoryEntrypointError(RepositoryRegistryError):
    pass


class RepositoryConfigError(RepositoryRegistryError):
    pass


class RepoFactory(Protocol):
    def __call__(self, *, config: Mapping[str, Any] | None = None) -> DefinitionRepository: ...


def open_memory_repository(
    *, config: Mapping[str, Any] | None = None
) -> InMemoryDefinitionRepository:
    """
    Builtin ``memory`` backend.

    Accepted options:
      thread_safe (bool, default False): lock each definition while it is
        resolved, for hosts that instantiate from several threads.
    """
    options = dict(config or {})
    thread_safe = options.pop("thread_safe", False)
    if options:
        raise RepositoryConfigError(
            f"memory repository does not understand {sorted(options)}; "
            "the only option is 'thread_safe'"
        )
    if not isinstance(thread_safe, bool):
        raise RepositoryConfigError(
            f"memory repository option thread_safe must be a bool, not {type(thread_safe).__name__}"
        )
    return InMemoryDefinitionRepository(thread_safe=thread_safe)


BUILTIN_REPOSITORY_FACTORIES: Mapping[str, RepoFactory] = {
    DEFAULT_REPOSITORY_ID: open_memory_repository,
}


@dataclass(frozen=True, slots=True)
class RepositoryEntry:
    repo_id: str
    factory: RepoFactory
    origin: RepositoryOrigin


@dataclass(frozen=True, slots=True)
class RepositoryCatalog:
    """
    Every definition repository backend an engine may open, by id.
    """

    entries: Mapping[str, RepositoryEntry]

    @classmethod
    def from_factories(
        cls,
        builtins: Mapping[str, RepoFactory],
        externals: Mapping[str, RepoFactory] | None = None,
    ) -> RepositoryCatalog:
        externals = externals or {}
        shadowed = sorted(set(builtins) & set(externals))
        if shadowed:
            raise RepositoryRegistryError(
                f"entry points may not reuse builtin repository ids: {shadowed}"
            )
        entries = {rid: RepositoryEntry(rid, f, "builtin") for rid, f in builtins.items()}
        entries.update(
            (rid, RepositoryEntry(rid, f, "entrypoint")) for rid, f in externals.items()
        )
        return cls(entries=entries)

    def ids(self) -> list[str]:
        return sorted(self.entries)

    def get(self, repo_id: str) -> RepositoryEntry | None:
        return self.entries.get(repo_id)


def _checked_factory(repo_id: str, obj: object) -> RepoFactory:
    """
    An entry point must load a function callable as ``factory(config=...)``.
    Classes are refused even though they are callable.
    """
    if inspect.isclass(obj) or not callable(obj):
        kind = f"class {obj.__name__}" if inspect.isclass(obj) else type(obj).__name__
        raise RepositoryEntrypointError(
            f"repository entry point {repo_id!r} loaded {kind}, expected a factory function"
        )
    sig = inspect.signature(obj)
    try:
        sig.bind(config=None)
    except TypeError as e:
        raise RepositoryEntrypointError(
            f"repository factory {repo_id!r} cannot be called as factory(config=...): "
            f"signature {sig}"
        ) from e
    return obj


def scan_repository_entry_points(group: str) -> dict[str, RepoFactory]:
    """
    Repository factories published under ``group``, keyed by entry point name.

    An id published twice in the group is an error; the second copy is not loaded.
    """
    found: dict[str, RepoFactory] = {}
    repeated: set[str] = set()
    for ep in entry_points().select(group=group):
        if ep.name in found:
            repeated.add(ep.name)
            continue
        found[ep.name] = _checked_factory(ep.name, ep.load())
        logging.debug(f"repository factory found: id={ep.name} group={group}")

    if repeated:
        raise RepositoryEntrypointError(
            f"repository ids published more than once in {group!r}: {sorted(repeated)}"
        )
    return found


def load_repository_catalog(
    group: str = REPOSITORY_ENTRYPOINT_GROUP,
) -> RepositoryCatalog:
    return RepositoryCatalog.from_factories(
        BUILTIN_REPOSITORY_FACTORIES, scan_repository_entry_points(group)
    )
