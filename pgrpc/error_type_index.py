"""Custom error types introspected from the configured errors schema."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from pgrpc.ident import to_pascal_case

_U32_MASK = 0xFFFFFFFF
_U64_LIMIT = 1 << 64
_I64_MIN, _I64_MAX = -(1 << 63), (1 << 63) - 1


@dataclass(frozen=True)
class ErrorField:
    name: str
    type_oid: int
    postgres_type: str
    position: int
    not_null: bool
    comment: str | None = None


@dataclass(frozen=True)
class ErrorType:
    error_name: str
    type_oid: int
    fields: tuple[ErrorField, ...] = field(default_factory=tuple)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _as_u64(value: Any) -> int | None:
    if _is_int(value):
        return value if 0 <= value < _U64_LIMIT else None
    if isinstance(value, str) and re.fullmatch(r"\+?[0-9]+", value):
        parsed = int(value)
        return parsed if parsed < _U64_LIMIT else None
    return None


def _to_i32(value: int) -> int:
    return ((value + (1 << 31)) & _U32_MASK) - (1 << 31)


def _parse_field(raw: Any) -> ErrorField | None:
    if not isinstance(raw, Mapping):
        return None
    name = raw.get("name")
    type_oid = _as_u64(raw.get("type_oid"))
    postgres_type = raw.get("postgres_type")
    position = raw.get("position")
    not_null = raw.get("not_null")
    if not (
        isinstance(name, str)
        and type_oid is not None
        and isinstance(postgres_type, str)
        and _is_int(position)
        and _I64_MIN <= position <= _I64_MAX
        and isinstance(not_null, bool)
    ):
        return None
    comment = raw.get("comment")
    return ErrorField(
        name=name,
        type_oid=type_oid & _U32_MASK,
        postgres_type=postgres_type,
        position=_to_i32(position),
        not_null=not_null,
        comment=comment if isinstance(comment, str) else None,
    )


def _parse_row(row: Mapping[str, Any]) -> ErrorType:
    try:
        error_name = row["error_name"]
        type_oid = row["type_oid"]
        fields_json = row["fields"]
    except KeyError as exc:
        raise ValueError(f"error type row lacks column {exc.args[0]!r}") from None
    if not isinstance(error_name, str) or not _is_int(type_oid):
        raise ValueError("error type row has invalid 'error_name' or 'type_oid'")
    if isinstance(fields_json, (str, bytes)):
        fields_json = json.loads(fields_json)
    if fields_json is None:
        fields_json = []
    if not isinstance(fields_json, list):
        raise ValueError(f"fields of error type {error_name!r} must be a JSON array")
    fields = tuple(f for f in map(_parse_field, fields_json) if f is not None)
    return ErrorType(error_name=error_name, type_oid=type_oid & _U32_MASK, fields=fields)


class ErrorTypeIndex(Mapping[str, ErrorType]):
    """Error types keyed by name."""

    def __init__(self, error_types: Mapping[str, ErrorType] | None = None) -> None:
        self._types: dict[str, ErrorType] = dict(error_types or {})

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> ErrorTypeIndex:
        """Build the index from introspection rows (error_name, type_oid, fields)."""
        return cls({t.error_name: t for t in map(_parse_row, rows)})

    def __getitem__(self, key: str) -> ErrorType:
        return self._types[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def error_names(self) -> list[str]:
        return list(self._types)

    def type_oids(self) -> set[int]:
        """OIDs of the error types and of every type their fields use."""
        oids: set[int] = set()
        for error_type in self._types.values():
            oids.add(error_type.type_oid)
            oids.update(f.type_oid for f in error_type.fields)
        return oids


def _rust_str(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def generate_error_type_enum(error_index: ErrorTypeIndex) -> str:
    """Render the Rust enum over all error payloads; empty when there are none."""
    if not error_index:
        return ""
    names = [(name, to_pascal_case(name)) for name in sorted(error_index)]
    lines = ["#[derive(Debug, Clone)]", "pub enum CustomError {"]
    lines += [f"    {pascal}({pascal})," for _, pascal in names]
    lines += [
        "}",
        "impl CustomError {",
        "    /// Try to parse a custom error from a JSON value",
        "    pub fn from_json(json: &serde_json::Value) -> Option<Self> {",
        '        let type_name = json.get("type")?.as_str()?;',
        "        match type_name {",
    ]
    for name, pascal in names:
        lines += [
            f"            {_rust_str(name)} => {{",
            f"                serde_json::from_value::<{pascal}>(json.clone())",
            "                    .ok()",
            f"                    .map(CustomError::{pascal})",
            "            }",
        ]
    lines += ["            _ => None,", "        }", "    }", "}"]
    return "\n".join(lines) + "\n"