from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from component_resolution_engine.config import EngineConfig
from component_resolution_engine.internal.assets import resolve_asset
from component_resolution_engine.internal.diagnostics import validate_component_name
from component_resolution_engine.internal.orchestration import InstantiationPipeline
from component_resolution_engine.internal.repositories.factory import open_repository
from component_resolution_engine.internal.repositories.registry import RepositoryCatalog
from component_resolution_engine.internal.resolver import OptionsResolver
from component_resolution_engine.model.definition import Definition
from component_resolution_engine.model.instance import Instance
from component_resolution_engine.model.options import (
    ASSET_TYPES,
    COMPONENTS,
    NAME,
    InternalComponentOptions,
    ParentVNode,
    VNodeComponentOptions,
)
from component_resolution_engine.repository import DefinitionRepository
from component_resolution_engine.services import InstantiationServices, load_services


def default_root_options() -> dict[str, Any]:
    return {asset: {} for asset in ASSET_TYPES}


@dataclass(kw_only=True, frozen=True, slots=True)
class ComponentEngine:
    """
    Entry point for defining components and creating instances.

    The engine owns a root definition whose asset registries (components,
    directives, filters) every extended definition inherits. Definitions are
    resolved against the engine's repository; instances are created by the
    instantiation pipeline.
    """

    root: Definition
    resolver: OptionsResolver
    pipeline: InstantiationPipeline

    @classmethod
    def build(
        cls,
        *,
        repo: DefinitionRepository,
        services: InstantiationServices,
        root_options: Mapping[str, Any] | None = None,
    ) -> ComponentEngine:
        resolver = OptionsResolver(repo=repo, merge_service=services.merge)
        root = Definition(
            root_options if root_options is not None else default_root_options()
        )
        resolver.resolve(root)
        return cls(
            root=root,
            resolver=resolver,
            pipeline=InstantiationPipeline(resolver=resolver, services=services),
        )

    @property
    def config(self) -> EngineConfig:
        return self.pipeline.services.config

    # -------------------------
    # definitions
    # -------------------------

    def extend(
        self, options: Mapping[str, Any], *, base: Definition | None = None
    ) -> Definition:
        """
        Create a definition extending ``base`` (the root by default) and resolve it.
        """
        base = base or self.root
        name = options.get(NAME) or base.name
        if name:
            validate_component_name(self.config, name)
        definition = Definition(options, super_ref=base)
        self.resolver.resolve(definition)
        return definition

    def resolve(self, definition: Definition) -> Mapping[str, Any]:
        return self.resolver.resolve(definition)

    def mixin(
        self, options: Mapping[str, Any], *, definition: Definition | None = None
    ) -> None:
        """
        Merge ``options`` into a definition (the root by default).

        Every descendant re-merges on its next resolution.
        """
        self.resolver.apply_mixin(definition or self.root, options)

    def register_component(
        self, name: str, definition: Definition | Mapping[str, Any]
    ) -> Definition:
        """
        Register a component globally, i.e. in the root's component registry.

        A plain option mapping is extended from the root first, named ``name``
        unless it carries its own name.
        """
        validate_component_name(self.config, name)
        if not isinstance(definition, Definition):
            definition = self.extend({NAME: name, **definition})
        registry = self.resolve(self.root).get(COMPONENTS)
        if registry is None:
            # Top-level write: descendants re-merge and see the new registry.
            self.root.own_options[COMPONENTS] = {name: definition}
        else:
            # Nested write: descendants' registries chain to this one.
            registry[name] = definition
        return definition

    def resolve_component(self, definition: Definition, name: str) -> Definition | None:
        return resolve_asset(self.resolve(definition), COMPONENTS, name)

    # -------------------------
    # instances
    # -------------------------

    # :: FeatureFlow | type=feature_start | name=instance_creation
    def create_instance(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        definition: Definition | None = None,
    ) -> Instance:
        return self.pipeline.create(definition or self.root, options)

    def create_component_vnode(
        self,
        definition: Definition,
        *,
        context: Instance | None = None,
        tag: str | None = None,
        props_data: Mapping[str, Any] | None = None,
        listeners: Mapping[str, Any] | None = None,
        children: Sequence[Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> ParentVNode:
        """
        Placeholder for a child component inside ``context``'s render output.

        Resolves the definition so a mixin applied after the definition was
        created is already merged in when the child is instantiated.
        """
        self.resolver.resolve(definition)
        return ParentVNode(
            component_options=VNodeComponentOptions(
                definition=definition,
                tag=tag,
                props_data=props_data,
                listeners=listeners,
                children=children,
            ),
            context=context,
            data=dict(data or {}),
        )

    def create_internal(
        self,
        parent_vnode: ParentVNode,
        *,
        parent: Instance | None = None,
        render: Callable[..., Any] | None = None,
        static_render_fns: Sequence[Callable[..., Any]] | None = None,
    ) -> Instance:
        return self.pipeline.create_internal(
            InternalComponentOptions(
                parent_vnode=parent_vnode,
                parent=parent if parent is not None else parent_vnode.context,
                render=render,
                static_render_fns=static_render_fns,
            )
        )


@contextmanager
def open_engine(
    config: EngineConfig | None = None,
    *,
    repo_config: Mapping[str, Any] | None = None,
    catalog: RepositoryCatalog | None = None,
    root_options: Mapping[str, Any] | None = None,
    **collaborators: Any,
) -> Iterator[ComponentEngine]:
    """
    Build services from ``config``, open the configured definition repository and
    yield an engine over it. The repository is closed on exit.
    """
    config = config or EngineConfig()
    services = load_services(config=config, **collaborators)
    with open_repository(
        repo_id=config.repo_id, config=repo_config, catalog=catalog
    ) as repo:
        yield ComponentEngine.build(
            repo=repo, services=services, root_options=root_options
        )
