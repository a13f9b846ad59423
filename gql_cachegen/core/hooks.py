"""Derivation hooks for customizing what gets generated.

Provides protocols for pre- and post-derivation hooks that can modify the
schema IR before any keys are derived or adjust the derived result.

Example usage:
    from gql_cachegen.core.hooks import FilterTablesHook, HookRunner

    runner = HookRunner()
    runner.add_pre_hook(FilterTablesHook(exclude=["_*", "*Audit"]))

    # Post-derivation hook to drop custom mutation keys
    class NoCustomMutationKeys:
        def post_derive(self, result):
            result.custom_mutation_keys = None
            return result
"""

from collections.abc import Iterable
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .ir import SchemaIR

if TYPE_CHECKING:
    from .pipeline import GenerationResult


def matches_patterns(name: str, patterns: Iterable[str]) -> bool:
    """Check if a name matches any of the glob patterns (``*`` and ``?``, case-sensitive)."""
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def filter_names(names: Iterable[str], include: Iterable[str] = ("*",), exclude: Iterable[str] = ()) -> list[str]:
    """Apply include then exclude patterns; an empty include list keeps everything."""
    include, exclude = list(include), list(exclude)
    result = list(names)
    if include:
        result = [n for n in result if matches_patterns(n, include)]
    if exclude:
        result = [n for n in result if not matches_patterns(n, exclude)]
    return result


@runtime_checkable
class PreDeriveHook(Protocol):
    """Protocol for pre-derivation hooks.

    Pre-derivation hooks receive the schema IR (registry, operations and
    tables) before classification and key derivation, and can modify it.
    """

    def pre_derive(self, ir: SchemaIR) -> SchemaIR:
        """Called before derivation.

        Args:
            ir: The intermediate representation of the schema

        Returns:
            The (possibly modified) IR to derive from
        """
        ...


@runtime_checkable
class PostDeriveHook(Protocol):
    """Protocol for post-derivation hooks.

    Post-derivation hooks receive the complete result and can adjust it
    before it is handed to emitters.
    """

    def post_derive(self, result: "GenerationResult") -> "GenerationResult":
        ...


class FilterTablesHook:
    """Built-in hook to filter tables by name.

    Example:
        # Skip internal tables
        hook = FilterTablesHook(exclude=["_*"])
    """

    def __init__(self, include: Iterable[str] = ("*",), exclude: Iterable[str] = ()):
        self.include = list(include)
        self.exclude = list(exclude)

    def pre_derive(self, ir: SchemaIR) -> SchemaIR:
        """Filter tables from the IR."""
        keep = set(filter_names((t.name for t in ir.tables), self.include, self.exclude))
        ir.tables = [t for t in ir.tables if t.name in keep]
        return ir


class FilterOperationsHook:
    """Built-in hook to filter root queries or mutations by name."""

    def __init__(self, operation_type: str, include: Iterable[str] = ("*",), exclude: Iterable[str] = ()):
        if operation_type not in ("query", "mutation"):
            raise ValueError(f"operation_type must be 'query' or 'mutation', got {operation_type!r}")
        self.operation_type = operation_type
        self.include = list(include)
        self.exclude = list(exclude)

    def pre_derive(self, ir: SchemaIR) -> SchemaIR:
        """Filter operations of one kind from the IR."""
        operations = ir.queries if self.operation_type == "query" else ir.mutations
        keep = set(filter_names((op.name for op in operations), self.include, self.exclude))
        filtered = [op for op in operations if op.name in keep]
        if self.operation_type == "query":
            ir.queries = filtered
        else:
            ir.mutations = filtered
        return ir


class HookRunner:
    """Runs a collection of hooks in order."""

    def __init__(self):
        self.pre_hooks: list[PreDeriveHook] = []
        self.post_hooks: list[PostDeriveHook] = []

    def add_pre_hook(self, hook: PreDeriveHook):
        """Add a pre-derivation hook."""
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostDeriveHook):
        """Add a post-derivation hook."""
        self.post_hooks.append(hook)

    def run_pre_hooks(self, ir: SchemaIR) -> SchemaIR:
        """Run all pre-derivation hooks in order."""
        for hook in self.pre_hooks:
            ir = hook.pre_derive(ir)
        return ir

    def run_post_hooks(self, result: "GenerationResult") -> "GenerationResult":
        """Run all post-derivation hooks in order."""
        for hook in self.post_hooks:
            result = hook.post_derive(result)
        return result
