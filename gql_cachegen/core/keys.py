"""Descriptive key templates.

A key factory is a set of named rules. Each rule lists its parameters and
the segments its key is made of; an emitter turns that into source text,
and ``KeyFactory.build`` evaluates it to a concrete tuple key (used by the
invalidation deriver and by tests).

Segments:
    Literal("list")          -> "list"
    Value("id")              -> the bound value of ``id``
    Record("tableId", "id")  -> {"tableId": <value of id>}
    Extend("lists", ("scope",)) -> every segment of ``lists(scope)``

``Value`` and ``Record`` segments bound to an optional parameter are left
out when the parameter is None. Required parameters never accept None.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class KeyParam:
    """A parameter of a key rule."""
    name: str
    type: str  # 'id', 'variables', 'scope' or 'string'
    optional: bool = False
    scope_type: str | None = None


@dataclass(frozen=True)
class Literal:
    value: str

    def render(self, factory: "KeyFactory", bound: dict[str, Any]) -> list[Any]:
        return [self.value]


@dataclass(frozen=True)
class Value:
    param: str

    def render(self, factory: "KeyFactory", bound: dict[str, Any]) -> list[Any]:
        value = bound.get(self.param)
        return [] if value is None else [value]


@dataclass(frozen=True)
class Record:
    key: str
    param: str

    def render(self, factory: "KeyFactory", bound: dict[str, Any]) -> list[Any]:
        value = bound.get(self.param)
        return [] if value is None else [{self.key: value}]


@dataclass(frozen=True)
class Extend:
    rule: str
    args: tuple[str, ...] = ()

    def render(self, factory: "KeyFactory", bound: dict[str, Any]) -> list[Any]:
        return list(factory.build(self.rule, *(bound.get(a) for a in self.args)))


Segment = Union[Literal, Value, Record, Extend]


@dataclass(frozen=True)
class KeyRule:
    """One named key (or key function) of a factory."""
    name: str
    params: tuple[KeyParam, ...] = ()
    segments: tuple[Segment, ...] = ()
    description: str = ""

    def bind(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> dict[str, Any]:
        if len(args) > len(self.params):
            raise TypeError(f"{self.name}() takes {len(self.params)} arguments but {len(args)} were given")
        bound: dict[str, Any] = {}
        for param, value in zip(self.params, args):
            bound[param.name] = value
        for name, value in kwargs.items():
            if name not in {p.name for p in self.params}:
                raise TypeError(f"{self.name}() got an unexpected argument '{name}'")
            if name in bound:
                raise TypeError(f"{self.name}() got multiple values for argument '{name}'")
            bound[name] = value
        for param in self.params:
            if bound.get(param.name) is not None:
                continue
            if not param.optional:
                raise TypeError(f"{self.name}() missing required argument '{param.name}'")
            bound[param.name] = None
        return bound


@dataclass(frozen=True)
class ScopeBranch:
    """Use ``accessor`` when the scope carries ``foreign_key``."""
    foreign_key: str
    accessor: str


@dataclass(frozen=True)
class ScopeResolution:
    """Pick the most specific accessor available for a partial scope.

    Branches are checked in order (nearest ancestor first); when none
    applies the ``fallback`` rule is used.
    """
    name: str
    branches: tuple[ScopeBranch, ...]
    fallback: str = "all"
    scope_type: str | None = None


@dataclass(frozen=True)
class KeyFactory:
    """A named collection of key rules."""
    name: str
    rules: tuple[KeyRule, ...] = ()
    scope_resolution: ScopeResolution | None = None
    description: str = ""
    _index: dict[str, KeyRule] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {rule.name: rule for rule in self.rules})

    @property
    def rule_names(self) -> list[str]:
        names = [rule.name for rule in self.rules]
        if self.scope_resolution is not None:
            names.append(self.scope_resolution.name)
        return names

    def has_rule(self, name: str) -> bool:
        return name in self._index or (self.scope_resolution is not None and self.scope_resolution.name == name)

    def rule(self, name: str) -> KeyRule:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"{self.name} has no key rule '{name}'") from None

    def build(self, rule_name: str, *args: Any, **kwargs: Any) -> tuple[Any, ...]:
        """Evaluate a rule to a concrete key."""
        if self.scope_resolution is not None and rule_name == self.scope_resolution.name:
            scope = args[0] if args else kwargs.get("scope")
            return self.resolve_scope(scope)
        rule = self.rule(rule_name)
        bound = rule.bind(args, kwargs)
        key: list[Any] = []
        for segment in rule.segments:
            key.extend(segment.render(self, bound))
        return tuple(key)

    def resolve_scope(self, scope: Mapping[str, Any] | None) -> tuple[Any, ...]:
        """Key of the most specific accessor the scope allows."""
        if self.scope_resolution is None:
            raise KeyError(f"{self.name} has no scope resolution")
        scope = scope or {}
        for branch in self.scope_resolution.branches:
            value = scope.get(branch.foreign_key)
            if value not in (None, ""):
                return self.build(branch.accessor, value)
        return self.build(self.scope_resolution.fallback)


def is_prefix(prefix: tuple[Any, ...], key: tuple[Any, ...]) -> bool:
    """True when ``key`` starts with ``prefix``, the rule cache invalidation relies on."""
    return len(prefix) <= len(key) and key[: len(prefix)] == prefix
