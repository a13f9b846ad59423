"""Naming helpers shared by the key and invalidation derivers."""

import re


def lc_first(name: str) -> str:
    """Lowercase the first character."""
    return name[:1].lower() + name[1:]


def uc_first(name: str) -> str:
    """Uppercase the first character."""
    return name[:1].upper() + name[1:]


def to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def to_pascal_case(name: str) -> str:
    """Convert snake_case or camelCase to PascalCase."""
    snake = to_snake_case(name)
    return "".join(word.capitalize() for word in snake.split("_"))


def entity_key(name: str) -> str:
    """Key under which an entity is stored in the cache and in the relationship map."""
    return name.lower()


def keys_name(type_name: str) -> str:
    """e.g. 'DatabaseTable' -> 'databaseTableKeys'."""
    return f"{lc_first(type_name)}Keys"


def mutation_keys_name(type_name: str) -> str:
    return f"{lc_first(type_name)}MutationKeys"


def type_name_for(entity: str) -> str:
    """PascalCase type name for a configured entity name ('app_user' -> 'AppUser')."""
    if "_" in entity:
        return to_pascal_case(entity)
    return uc_first(entity)


def accessor_name(ancestor: str) -> str:
    """Name of the scoped accessor for an ancestor, e.g. 'database' -> 'byDatabase'."""
    return f"by{type_name_for(ancestor)}"


def foreign_key_for(ancestor: str) -> str:
    """Derived foreign key for an ancestor, e.g. 'Database' -> 'databaseId'."""
    return f"{lc_first(type_name_for(ancestor))}Id"
