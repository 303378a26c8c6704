"""Flattening of composite types whose fields are marked for flattening."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, MutableSequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CompositeField:
    """A field of a composite type."""

    name: str
    type_oid: int
    nullable: bool = True
    comment: str | None = None
    flatten: bool = False


@dataclass(frozen=True)
class CompositeType:
    """A composite (row) type, as used by tables, views and ``CREATE TYPE``."""

    schema: str
    name: str
    fields: tuple[CompositeField, ...] = ()
    comment: str | None = None
    relkind: str | None = None
    view_definition: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass
class FlattenedField:
    """A field of the flattened structure and where it came from."""

    name: str
    original_path: list[str]
    type_oid: int
    nullable: bool
    comment: str | None = None


@dataclass
class FlattenAnalysis:
    flattened_fields: list[FlattenedField]
    dependencies: set[int] = field(default_factory=set)


class FlattenError(Exception):
    """Base class for errors found while flattening."""


class CyclicDependencyError(FlattenError):
    def __init__(self, path: Iterable[str]) -> None:
        self.path = list(path)
        super().__init__("cyclic flatten dependency: " + " -> ".join(self.path))


class InvalidFlattenTargetError(FlattenError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TypeNotFoundError(FlattenError):
    def __init__(self, oid: int) -> None:
        self.oid = oid
        super().__init__(f"type not found: {oid}")


def analyze_flatten_dependencies(
    composite_type: Any, types: Mapping[int, Any]
) -> FlattenAnalysis:
    """Flatten a composite type and collect the OIDs of the types it pulls in."""
    dependencies: set[int] = set()
    fields = _flatten(composite_type, types, set(), [], dependencies)
    return FlattenAnalysis(flattened_fields=fields, dependencies=dependencies)


def _flatten(
    composite_type: Any,
    types: Mapping[int, Any],
    visited: set[str],
    path: list[str],
    dependencies: set[int],
) -> list[FlattenedField]:
    if not isinstance(composite_type, CompositeType):
        raise InvalidFlattenTargetError("Only composite types can be flattened")

    type_name = composite_type.name
    if type_name in visited:
        raise CyclicDependencyError(path)
    visited.add(type_name)
    path.append(type_name)

    result: list[FlattenedField] = []
    for fld in composite_type.fields:
        if not fld.flatten:
            result.append(
                FlattenedField(
                    name=fld.name,
                    original_path=[fld.name],
                    type_oid=fld.type_oid,
                    nullable=fld.nullable,
                    comment=fld.comment,
                )
            )
            continue
        try:
            field_type = types[fld.type_oid]
        except KeyError:
            raise TypeNotFoundError(fld.type_oid) from None
        dependencies.add(fld.type_oid)
        for sub in _flatten(field_type, types, visited, path, dependencies):
            result.append(
                FlattenedField(
                    name=generate_field_name(fld.name, sub.name),
                    original_path=[fld.name, *sub.original_path],
                    type_oid=sub.type_oid,
                    nullable=fld.nullable or sub.nullable,
                    comment=sub.comment,
                )
            )

    path.pop()
    visited.discard(type_name)
    return result


def generate_field_name(parent_name: str, field_name: str) -> str:
    """Join a parent field name and a sub-field name with an underscore."""
    return f"{parent_name}_{field_name}" if parent_name else field_name


def has_field_conflict(new_name: str, existing_fields: Iterable[FlattenedField]) -> bool:
    return any(f.name == new_name for f in existing_fields)


def resolve_field_conflicts(fields: MutableSequence[FlattenedField]) -> None:
    """Rename repeated field names in place by appending their occurrence count."""
    counts: Counter[str] = Counter()
    for fld in fields:
        counts[fld.name] += 1
        count = counts[fld.name]
        if count > 1:
            fld.name = f"{fld.name}_{count}"