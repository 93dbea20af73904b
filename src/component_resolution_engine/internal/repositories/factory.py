from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from component_resolution_engine.internal.repositories.registry import (
    DEFAULT_REPOSITORY_ID,
    RepositoryCatalog,
    RepositoryRegistryError,
    load_repository_catalog,
)
from component_resolution_engine.repository import DefinitionRepository


class RepositorySelectionError(RuntimeError):
    pass


def create_repository(
    *,
    repo_id: str | None,
    config: Mapping[str, Any] | None = None,
    catalog: RepositoryCatalog | None = None,
) -> DefinitionRepository:
    """
    Open the backend registered as ``repo_id``; None picks ``memory``.

    Without an explicit ``catalog`` the installed entry points are scanned.
    Catalog problems surface as RepositorySelectionError; errors raised by the
    backend's own factory (bad options, for example) propagate as they are.
    """
    rid = repo_id or DEFAULT_REPOSITORY_ID
    if catalog is None:
        try:
            catalog = load_repository_catalog()
        except RepositoryRegistryError as e:
            raise RepositorySelectionError(f"cannot list repository backends: {e}") from e

    entry = catalog.get(rid)
    if entry is None:
        raise RepositorySelectionError(
            f"no repository backend named {rid!r}; installed: {', '.join(catalog.ids())}"
        )
    logging.debug(f"opening definition repository: id={rid} origin={entry.origin}")
    return entry.factory(config=config)


@contextmanager
def open_repository(
    *,
    repo_id: str | None,
    config: Mapping[str, Any] | None = None,
    catalog: RepositoryCatalog | None = None,
) -> Iterator[DefinitionRepository]:
    repo = create_repository(repo_id=repo_id, config=config, catalog=catalog)
    try:
        yield repo
    finally:
        repo.close()
