"""Generator configuration, loadable from a TOML file."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DEFAULT_TABLE_SCHEMA = "mq"
DEFAULT_TABLE_NAME = "task"
DEFAULT_RAISE_FUNCTION = "core.raise_error"


def _require_str(data: Mapping[str, Any], key: str, owner: str) -> str:
    if key not in data:
        raise ValueError(f"{owner}: missing field '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{owner}: field '{key}' must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str, owner: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{owner}: field '{key}' must be a string")
    return value


def _str_mapping(data: Mapping[str, Any], key: str) -> dict[str, str]:
    value = data.get(key, {})
    if not isinstance(value, Mapping):
        raise TypeError(f"config: field '{key}' must be a table")
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise TypeError(f"config: entries of '{key}' must map strings to strings")
    return dict(value)


def _require_mapping(value: Any, owner: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{owner}: expected a table")
    return value


@dataclass
class TaskQueueConfig:
    """Where task definitions live and how the queue table is laid out."""

    schema: str = "tasks"
    task_name_column: str = "task_name"
    payload_column: str = "payload"
    table_schema: str | None = DEFAULT_TABLE_SCHEMA
    table_name: str | None = DEFAULT_TABLE_NAME

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TaskQueueConfig:
        data = _require_mapping(data, "task_queue")
        return cls(
            schema=_require_str(data, "schema", "task_queue"),
            task_name_column=_require_str(data, "task_name_column", "task_queue"),
            payload_column=_require_str(data, "payload_column", "task_queue"),
            table_schema=_optional_str(data, "table_schema", "task_queue"),
            table_name=_optional_str(data, "table_name", "task_queue"),
        )

    def effective_table_schema(self) -> str:
        """The queue table's schema, falling back to the default."""
        return self.table_schema if self.table_schema is not None else DEFAULT_TABLE_SCHEMA

    def effective_table_name(self) -> str:
        """The queue table's name, falling back to the default."""
        return self.table_name if self.table_name is not None else DEFAULT_TABLE_NAME

    def full_table_name(self) -> str:
        """The qualified queue table name, ``schema.table``."""
        return f"{self.effective_table_schema()}.{self.effective_table_name()}"


@dataclass
class ErrorsConfig:
    """Where custom error types live and which function raises them."""

    schema: str = "errors"
    raise_function: str | None = DEFAULT_RAISE_FUNCTION

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ErrorsConfig:
        data = _require_mapping(data, "errors")
        return cls(
            schema=_require_str(data, "schema", "errors"),
            raise_function=_optional_str(data, "raise_function", "errors"),
        )

    def effective_raise_function(self) -> str:
        """The raise function name, falling back to the default."""
        return self.raise_function if self.raise_function is not None else DEFAULT_RAISE_FUNCTION


@dataclass
class Config:
    """Complete generator settings."""

    connection_string: str | None = None
    output_path: str | None = None
    types: dict[str, str] = field(default_factory=dict)
    exceptions: dict[str, str] = field(default_factory=dict)
    schemas: list[str] = field(default_factory=list)
    task_queue: TaskQueueConfig | None = None
    errors: ErrorsConfig | None = None
    infer_view_nullability: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Config:
        """Build a config from parsed TOML; absent keys take their defaults."""
        data = _require_mapping(data, "config")
        schemas = data.get("schemas", [])
        if not isinstance(schemas, list) or not all(isinstance(s, str) for s in schemas):
            raise TypeError("config: 'schemas' must be a list of strings")
        infer = data.get("infer_view_nullability", True)
        if not isinstance(infer, bool):
            raise TypeError("config: 'infer_view_nullability' must be a boolean")
        task_queue = data.get("task_queue")
        errors = data.get("errors")
        return cls(
            connection_string=_optional_str(data, "connection_string", "config"),
            output_path=_optional_str(data, "output_path", "config"),
            types=_str_mapping(data, "types"),
            exceptions=_str_mapping(data, "exceptions"),
            schemas=list(schemas),
            task_queue=TaskQueueConfig.from_mapping(task_queue) if task_queue is not None else None,
            errors=ErrorsConfig.from_mapping(errors) if errors is not None else None,
            infer_view_nullability=infer,
        )


def load_config(path: str | os.PathLike[str]) -> Config:
    """Read and parse a TOML configuration file."""
    with open(path, "rb") as handle:
        return Config.from_mapping(tomllib.load(handle))