from __future__ import annotations

import itertools
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

_cids = itertools.count(1)


class DefinitionError(Exception):
    """
    Base error type for malformed component definitions.
    """


class DefinitionCycleError(DefinitionError):
    """
    Raised when walking a definition's ancestor chain revisits a definition.
    """

    def __init__(self, message: str, *, chain: tuple[Definition, ...] = ()):
        super().__init__(message)
        self.chain = chain


class OptionsMapping(MutableMapping[str, Any]):
    """
    Live option mapping carrying a version token.

    Every top-level write or delete bumps ``version``. The resolver compares the
    token against the one recorded at seal time, so an untouched mapping is
    recognized in O(1). Nested in-place mutation (``opts["methods"]["x"] = f``)
    does not bump the token, same as it would not change a reference.

    A plain ``dict`` passed in is wrapped by reference, not copied.
    """

    __slots__ = ("_data", "_version")

    def __init__(self, data: MutableMapping[str, Any] | None = None) -> None:
        self._data: MutableMapping[str, Any] = {} if data is None else data
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._version += 1

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._version += 1

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"OptionsMapping({dict(self._data)!r}, version={self._version})"


def as_options_mapping(options: Mapping[str, Any] | None) -> OptionsMapping:
    if isinstance(options, OptionsMapping):
        return options
    if options is None:
        return OptionsMapping()
    if isinstance(options, dict):
        return OptionsMapping(options)
    return OptionsMapping(dict(options))


class Definition:
    """
    A reusable component blueprint extending at most one other definition.

    ``own_options`` is the live mapping callers read and mutate. For a derived
    definition it is replaced by every merge, so after resolution it is the
    same object the repository holds as the resolved options. ``extend_options``
    keeps the raw options passed at extension time; late-modified keys are
    folded back into it before re-merging.

    ``super_ref`` is fixed at construction. The constructor walks the chain and
    raises ``DefinitionCycleError`` if it does not terminate.
    """

    __slots__ = ("cid", "_super_ref", "extend_options", "_own_options", "__weakref__")

    def __init__(
        self,
        extend_options: Mapping[str, Any] | None = None,
        *,
        super_ref: Definition | None = None,
    ) -> None:
        self.cid: int = next(_cids)
        self._super_ref = super_ref
        self.extend_options: dict[str, Any] = (
            dict(extend_options) if extend_options is not None else {}
        )
        # Until the first merge, the live view writes straight through to the
        # raw options.
        self._own_options = OptionsMapping(self.extend_options)
        check_acyclic(self)

    @property
    def super_ref(self) -> Definition | None:
        return self._super_ref

    @property
    def own_options(self) -> OptionsMapping:
        return self._own_options

    @own_options.setter
    def own_options(self, options: Mapping[str, Any]) -> None:
        self._own_options = as_options_mapping(options)

    @property
    def name(self) -> str | None:
        name = self._own_options.get("name")
        if name is None:
            name = self.extend_options.get("name")
        return name if isinstance(name, str) and name else None

    @property
    def is_root(self) -> bool:
        return self._super_ref is None

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.ancestors())

    def ancestors(self) -> Iterator[Definition]:
        """
        Yield ancestors nearest-first.
        """
        current = self._super_ref
        while current is not None:
            yield current
            current = current.super_ref

    def __repr__(self) -> str:
        label = self.name or "anonymous"
        return f"Definition(cid={self.cid}, name={label!r}, depth={self.depth})"


def check_acyclic(definition: Definition) -> None:
    seen: list[Definition] = [definition]
    current = definition.super_ref
    while current is not None:
        if any(current is d for d in seen):
            raise DefinitionCycleError(
                f"cyclic ancestor chain detected at definition cid={current.cid}",
                chain=tuple(seen),
            )
        seen.append(current)
        current = current.super_ref
