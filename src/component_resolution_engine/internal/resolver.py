from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from component_resolution_engine.model.definition import (
    Definition,
    OptionsMapping,
    as_options_mapping,
)
from component_resolution_engine.model.options import COMPONENTS, NAME
from component_resolution_engine.repository import DefinitionRecord, DefinitionRepository
from component_resolution_engine.strategies import MISSING, MergeService


def resolve_modified_options(
    latest: Mapping[str, Any], sealed: Mapping[str, Any] | None
) -> dict[str, Any] | None:
    """
    Keys of ``latest`` whose value is not the very object recorded in ``sealed``.

    Keys added since sealing count as modified; keys removed since sealing do not.
    Returns None when nothing changed.
    """
    sealed = sealed or {}
    modified: dict[str, Any] | None = None
    for key, value in latest.items():
        if value is not sealed.get(key, MISSING):
            if modified is None:
                modified = {}
            modified[key] = value
    return modified


def _is_current(rec: DefinitionRecord, live: OptionsMapping) -> bool:
    return (
        rec.sealed_options is not None
        and rec.resolved_options is live
        and rec.sealed_version == live.version
    )


def _fold_replaced_options(definition: Definition, live: OptionsMapping) -> None:
    # Options reassigned before the first resolution replace the raw ones key
    # by key; the untouched initial wrapper yields nothing to fold.
    modified = resolve_modified_options(live, definition.extend_options)
    if modified:
        logging.debug(
            f"replaced options folded before first resolution: cid={definition.cid} "
            f"keys={sorted(modified)}"
        )
        definition.extend_options.update(modified)


@dataclass(frozen=True, slots=True)
class OptionsResolver:
    """
    Resolves a definition's merged options, re-merging only when needed.

    A cached result is trusted when the parent's resolved mapping is the same
    object seen at the last merge and the live options are untouched since they
    were sealed. Recursion depth equals the ancestor chain length.
    """

    repo: DefinitionRepository
    merge_service: MergeService

    def resolve(self, definition: Definition) -> Mapping[str, Any]:
        if definition.super_ref is None:
            with self.repo.guard(definition):
                return self._resolve_root(definition)

        # Ancestors first; their guards are released before this one is taken.
        super_options = self.resolve(definition.super_ref)
        with self.repo.guard(definition):
            return self._resolve_derived(definition, super_options)

    def apply_mixin(self, definition: Definition, mixin: Mapping[str, Any]) -> None:
        """
        Merge ``mixin`` into the definition's live options without sealing.

        The replacement is picked up by the next ``resolve`` like any other late
        modification, so descendants re-merge against it.
        """
        with self.repo.guard(definition):
            current = self.resolve(definition)
            definition.own_options = self.merge_service.merge(current, mixin)

    # -------------------------
    # internals
    # -------------------------

    def _resolve_derived(
        self, definition: Definition, super_options: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        live = definition.own_options
        rec = self.repo.record(definition)

        if rec is None:
            logging.debug(f"resolve miss (first resolution): cid={definition.cid}")
            _fold_replaced_options(definition, live)
            return self._merge(definition, super_options)

        super_changed = rec.super_options_seen is not super_options
        if not super_changed and _is_current(rec, live):
            return rec.resolved_options

        modified = resolve_modified_options(live, rec.sealed_options)
        if modified:
            logging.debug(
                f"late-modified options folded: cid={definition.cid} keys={sorted(modified)}"
            )
            definition.extend_options.update(modified)

        if super_changed or modified:
            if super_changed:
                logging.debug(f"resolve miss (ancestor changed): cid={definition.cid}")
            return self._merge(definition, super_options)

        # Written to but every value is still the sealed one.
        return self._reseal(definition, live, super_options=super_options)

    def _resolve_root(self, definition: Definition) -> Mapping[str, Any]:
        live = definition.own_options
        rec = self.repo.record(definition)

        if rec is not None and _is_current(rec, live):
            return live

        if rec is None:
            _fold_replaced_options(definition, live)

        if rec is not None and rec.resolved_options is live:
            modified = resolve_modified_options(live, rec.sealed_options)
            if modified:
                logging.debug(
                    f"root options modified: cid={definition.cid} keys={sorted(modified)}"
                )
                definition.extend_options.update(modified)
                # A fresh mapping gives descendants a new identity to compare.
                live = OptionsMapping(dict(live))
                definition.own_options = live

        return self._reseal(definition, live, super_options=None)

    def _merge(
        self, definition: Definition, super_options: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        merged = as_options_mapping(
            self.merge_service.merge(super_options, definition.extend_options)
        )
        name = merged.get(NAME)
        if isinstance(name, str) and name:
            self._register_self(merged, name, definition)
        definition.own_options = merged
        return self._reseal(definition, merged, super_options=super_options)

    def _reseal(
        self,
        definition: Definition,
        live: OptionsMapping,
        *,
        super_options: Mapping[str, Any] | None,
    ) -> Mapping[str, Any]:
        self.repo.put(definition, live, super_options=super_options)
        self.repo.snapshot_sealed(definition, version=live.version)
        return live

    @staticmethod
    def _register_self(merged: OptionsMapping, name: str, definition: Definition) -> None:
        components = merged.get(COMPONENTS)
        if components is None:
            components = {}
            merged[COMPONENTS] = components
        components[name] = definition
