from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from os import PathLike
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from component_resolution_engine.internal.util.toml import (
    dump_toml_to_str,
    load_toml_file,
    load_toml_text,
)

if TYPE_CHECKING:
    from component_resolution_engine.model.instance import Instance

WarnHandler = Callable[[str, "Instance | None", str], None]

CONFIG_TABLE = "engine"


class EngineConfigError(ValueError):
    pass


def _expect_bool(mapping: Mapping[str, Any], key: str, default: bool) -> bool:
    value = mapping.get(key, default)
    if not isinstance(value, bool):
        raise EngineConfigError(f"{key}: expected bool, got {type(value).__name__}")
    return value


@dataclass(kw_only=True, frozen=True, slots=True)
class EngineConfig:
    """
    Engine-wide settings.

    Attributes:
        silent (bool): suppress misuse warnings entirely.
        performance (bool): log per-instance init duration at debug level.
        merge_strategies (Mapping[str, str]): option key -> merge strategy name.
            Bindings here override the builtin defaults key by key.
        repo_id (str | None): definition repository backend; None selects the
            builtin in-memory repository.
        warn_handler (WarnHandler | None): receives ``(message, instance, trace)``
            instead of the logging channel. Not serializable; set in code.
    """

    silent: bool = False
    performance: bool = False
    merge_strategies: Mapping[str, str] = field(default_factory=dict)
    repo_id: str | None = None
    warn_handler: WarnHandler | None = field(default=None, compare=False)

    def to_mapping(self) -> dict[str, Any]:
        mapping: dict[str, Any] = {
            "silent": self.silent,
            "performance": self.performance,
        }
        if self.merge_strategies:
            mapping["merge_strategies"] = dict(sorted(self.merge_strategies.items()))
        if self.repo_id is not None:
            mapping["repo_id"] = self.repo_id
        return mapping

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Self:
        strategies = mapping.get("merge_strategies", {})
        if not isinstance(strategies, Mapping):
            raise EngineConfigError(
                f"merge_strategies: expected table, got {type(strategies).__name__}"
            )
        for key, name in strategies.items():
            if not isinstance(name, str) or not name:
                raise EngineConfigError(
                    f"merge_strategies.{key}: expected non-empty string"
                )
        repo_id = mapping.get("repo_id")
        if repo_id is not None and not isinstance(repo_id, str):
            raise EngineConfigError(
                f"repo_id: expected string, got {type(repo_id).__name__}"
            )
        unknown = set(mapping) - {"silent", "performance", "merge_strategies", "repo_id"}
        if unknown:
            raise EngineConfigError(f"unknown engine config keys: {sorted(unknown)}")
        return cls(
            silent=_expect_bool(mapping, "silent", False),
            performance=_expect_bool(mapping, "performance", False),
            merge_strategies=dict(strategies),
            repo_id=repo_id,
        )

    def to_toml(self) -> str:
        return dump_toml_to_str({CONFIG_TABLE: self.to_mapping()})

    @classmethod
    def from_toml(cls, text: str) -> Self:
        return cls._from_document(load_toml_text(text))

    @classmethod
    def from_toml_file(cls, path: str | PathLike[str]) -> Self:
        return cls._from_document(load_toml_file(path))

    @classmethod
    def _from_document(cls, document: Mapping[str, Any]) -> Self:
        table = document.get(CONFIG_TABLE, {})
        if not isinstance(table, Mapping):
            raise EngineConfigError(f"[{CONFIG_TABLE}] must be a table")
        return cls.from_mapping(table)
