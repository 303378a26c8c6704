"""Fluent configuration of a generator run and writing of its output files."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from pgrpc.config import Config, ErrorsConfig, TaskQueueConfig, load_config
from pgrpc.ident import CaseType, sql_to_rs_ident

DEFAULT_RAISE_FUNCTION = "core.raise_error"
DATABASE_URL_ENV = "DATABASE_URL"


class BuildConfigError(Exception):
    """The builder lacks a setting that a generator run needs."""


class PgrpcBuilder:
    """Collects generator settings; every setter returns the builder itself."""

    def __init__(self) -> None:
        self._connection_string: str | None = None
        self._schemas: list[str] = []
        self._types: dict[str, str] = {}
        self._exceptions: dict[str, str] = {}
        self._output_path: Path | None = None
        self._task_queue: TaskQueueConfig | None = None
        self._errors: ErrorsConfig | None = None
        self._infer_view_nullability = True

    @property
    def connection_string(self) -> str | None:
        return self._connection_string

    @property
    def schema_names(self) -> list[str]:
        return list(self._schemas)

    @property
    def types(self) -> dict[str, str]:
        return dict(self._types)

    @property
    def exceptions(self) -> dict[str, str]:
        return dict(self._exceptions)

    @property
    def output_path(self) -> Path | None:
        return self._output_path

    @property
    def task_queue(self) -> TaskQueueConfig | None:
        return self._task_queue

    @property
    def errors(self) -> ErrorsConfig | None:
        return self._errors

    @property
    def infer_view_nullability(self) -> bool:
        return self._infer_view_nullability

    def with_connection_string(self, connection_string: str) -> PgrpcBuilder:
        self._connection_string = connection_string
        return self

    def schema(self, schema: str) -> PgrpcBuilder:
        """Add a schema to generate code for."""
        self._schemas.append(schema)
        return self

    def schemas(self, schemas: Iterable[str]) -> PgrpcBuilder:
        """Add several schemas to generate code for."""
        self._schemas.extend(schemas)
        return self

    def type_mapping(self, pg_type: str, rust_type: str) -> PgrpcBuilder:
        self._types[pg_type] = rust_type
        return self

    def exception(self, sql_state: str, message: str) -> PgrpcBuilder:
        self._exceptions[sql_state] = message
        return self

    def with_output_path(self, path: str | os.PathLike[str]) -> PgrpcBuilder:
        self._output_path = Path(path)
        return self

    def enable_task_queue(self, schema: str) -> PgrpcBuilder:
        """Enable task queue generation; table location falls back to defaults."""
        self._task_queue = TaskQueueConfig(
            schema=schema,
            task_name_column="task_name",
            payload_column="payload",
            table_schema=None,
            table_name=None,
        )
        return self

    def _task_config(self) -> TaskQueueConfig:
        if self._task_queue is None:
            self._task_queue = TaskQueueConfig()
        return self._task_queue

    def task_queue_table_schema(self, schema: str) -> PgrpcBuilder:
        self._task_config().table_schema = schema
        return self

    def task_queue_table_name(self, name: str) -> PgrpcBuilder:
        self._task_config().table_name = name
        return self

    def task_queue_task_name_column(self, column: str) -> PgrpcBuilder:
        self._task_config().task_name_column = column
        return self

    def task_queue_payload_column(self, column: str) -> PgrpcBuilder:
        self._task_config().payload_column = column
        return self

    def with_task_queue(self, config: TaskQueueConfig) -> PgrpcBuilder:
        self._task_queue = config
        return self

    def enable_errors(self, schema: str) -> PgrpcBuilder:
        """Enable custom error types raised through the default raise function."""
        self._errors = ErrorsConfig(schema=schema, raise_function=DEFAULT_RAISE_FUNCTION)
        return self

    def errors_schema(self, schema: str) -> PgrpcBuilder:
        if self._errors is None:
            self._errors = ErrorsConfig()
        self._errors.schema = schema
        return self

    def with_errors(self, config: ErrorsConfig) -> PgrpcBuilder:
        self._errors = config
        return self

    def set_infer_view_nullability(self, infer: bool) -> PgrpcBuilder:
        self._infer_view_nullability = infer
        return self

    @classmethod
    def from_config_file(cls, config_path: str | os.PathLike[str]) -> PgrpcBuilder:
        """Create a builder from a TOML configuration file."""
        config = load_config(config_path)
        builder = cls()
        builder._connection_string = config.connection_string
        builder._schemas = list(config.schemas)
        builder._types = dict(config.types)
        builder._exceptions = dict(config.exceptions)
        builder._output_path = Path(config.output_path) if config.output_path is not None else None
        builder._task_queue = config.task_queue
        builder._errors = config.errors
        builder._infer_view_nullability = config.infer_view_nullability
        return builder

    def resolve_config(self) -> Config:
        """Check the settings a run needs and return them as one config.

        The connection string falls back to the ``DATABASE_URL`` environment
        variable. Raises ``BuildConfigError`` when a required setting is missing.
        """
        if self._output_path is None:
            raise BuildConfigError(
                "Output path is required. Specify either -o in CLI or output_path in pgrpc.toml"
            )
        connection_string = self._connection_string
        if connection_string is None:
            connection_string = os.environ.get(DATABASE_URL_ENV)
        if connection_string is None:
            raise BuildConfigError(
                "Connection string is required. Provide it via config file, builder method, "
                "or DATABASE_URL environment variable"
            )
        if not self._schemas:
            raise BuildConfigError("At least one schema must be specified")
        return Config(
            connection_string=connection_string,
            output_path=str(self._output_path),
            types=dict(self._types),
            exceptions=dict(self._exceptions),
            schemas=list(self._schemas),
            task_queue=self._task_queue,
            errors=self._errors,
            infer_view_nullability=self._infer_view_nullability,
        )


def generate_mod_file(schema_files: Mapping[str, str]) -> str:
    """Module declarations for every generated schema file, sorted by name."""
    lines = [
        f"pub mod {sql_to_rs_ident(schema, CaseType.SNAKE)};" for schema in sorted(schema_files)
    ]
    return "\n".join(lines) + "\n"


def write_if_changed(path: str | os.PathLike[str], content: str) -> bool:
    """Write ``content`` unless the file already holds it; True if written."""
    target = Path(path)
    if target.exists():
        try:
            if target.read_text(encoding="utf-8") == content:
                return False
        except (OSError, UnicodeDecodeError):
            pass
    target.write_text(content, encoding="utf-8")
    return True


def format_summary(files_written: int, files_unchanged: int, duration: float) -> str:
    """The one-line report printed after a run."""
    if files_unchanged == 0:
        message = f"{files_written} files written"
    elif files_written == 0:
        message = f"{files_unchanged} files unchanged"
    else:
        message = f"{files_written} files updated, {files_unchanged} unchanged"
    total = files_written + files_unchanged
    return f"✅  PgRPC: {message} ({total} total) in {duration:.2f}s"