# pgrpc

pgrpc holds the analysis and configuration pieces of a code generator for
PostgreSQL clients: reading generator settings, turning SQL names into
valid Rust identifiers, interpreting table constraints, finding some of the
exceptions a function can raise, flattening composite types, inferring
non-null fields of composite domains, and laying out the output directory.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

Settings live in a TOML file, `pgrpc.toml` by default:

```toml
connection_string = "postgres://localhost/app"
output_path = "generated"
schemas = ["public", "api"]
infer_view_nullability = true

[types]
citext = "String"

[exceptions]
P0002 = "NoDataFound"

[task_queue]
schema = "tasks"
task_name_column = "task_name"
payload_column = "payload"
# table_schema defaults to "mq", table_name to "task"

[errors]
schema = "errors"
# raise_function defaults to "core.raise_error"
```

`pgrpc.config.load_config(path)` reads such a file into a `Config`;
`Config.from_mapping(data)` does the same from an already parsed mapping.
Missing keys take their defaults; values of the wrong type raise
`TypeError`, and a `[task_queue]` or `[errors]` table without its required
keys raises `ValueError`.

`TaskQueueConfig.effective_table_schema()`, `effective_table_name()` and
`full_table_name()` (`"mq.task"` by default) and
`ErrorsConfig.effective_raise_function()` apply the defaults when a value
is unset.

## Command line

```
pgrpc
pgrpc --config-path other.toml
pgrpc -c pgrpc.toml -o generated
```

`--config-path` (`-c`) names the configuration file, which must exist, and
defaults to `pgrpc.toml`. `--output` (`-o`) overrides `output_path` from the
file. The command loads the file, checks that an output path, a connection
string (or the `DATABASE_URL` environment variable) and at least one schema
are set, and prints the schemas and the output directory. It exits with
status 1 and a message on standard error when the configuration is missing,
unreadable or incomplete.

## Library use

`pgrpc.builder.PgrpcBuilder` collects the same settings in code. Each
setter returns the builder, so calls chain:

```python
from pgrpc.builder import PgrpcBuilder

builder = (
    PgrpcBuilder()
    .with_connection_string("postgres://localhost/app")
    .schema("public")
    .schema("api")
    .type_mapping("citext", "String")
    .exception("P0002", "NoDataFound")
    .enable_errors("errors")
    .with_output_path("generated")
)
config = builder.resolve_config()
```

Further setters: `schemas`, `enable_task_queue`, `task_queue_table_schema`,
`task_queue_table_name`, `task_queue_task_name_column`,
`task_queue_payload_column`, `with_task_queue`, `errors_schema`,
`with_errors` and `set_infer_view_nullability`. A builder can also start
from a file with `PgrpcBuilder.from_config_file("pgrpc.toml")`.

`resolve_config()` returns a `Config` and raises `BuildConfigError` when the
output path, the connection string or the schema list is missing.

Helpers for the output directory, also in `pgrpc.builder`:

- `generate_mod_file(schema_files)` returns one `pub mod <name>;` line per
  key, sorted.
- `write_if_changed(path, content)` writes the file only when its content
  differs and returns whether it wrote.
- `format_summary(files_written, files_unchanged, duration)` returns the
  one-line report of a run.

## Modules

- `pgrpc.ident`: `split_words`, `to_snake_case`, `to_pascal_case` and
  `sql_to_rs_ident(name, CaseType.SNAKE | CaseType.PASCAL)`, which prefixes
  names starting with a digit with `_` and turns Rust keywords into raw
  identifiers (`type` becomes `r#type`).
- `pgrpc.pg_constraint`: `Constraint.from_json` reads a constraint (check,
  foreign key, primary key, unique, not null, default, domain) from its JSON
  form; `contains_columns`, `sql_state` (the SQLSTATE a violation raises;
  `ValueError` for default constraints) and `rs_name`.
- `pgrpc.fn_index`: `FunctionId.parse("api.get_user")` splits a qualified
  function name; unqualified names belong to `public`.
- `pgrpc.error_type_index`: `ErrorTypeIndex.from_rows` builds an index of
  custom error types from rows with `error_name`, `type_oid` and `fields`;
  `error_names()`, `type_oids()`, and `generate_error_type_enum(index)`,
  which renders the Rust `CustomError` enum as source text.
- `pgrpc.exceptions`: `PgException` in its four kinds (explicit SQLSTATE,
  constraint, strict, custom error) with `rs_name(config)`, which renames
  SQLSTATE codes through `config.exceptions`;
  `get_strict_exceptions(parsed)` reports a strict exception when an
  already parsed PL/pgSQL JSON tree holds an `INTO STRICT` statement;
  `get_comment_exceptions(comment)` reads `@pgrpc_throws XXXXX` markers.
- `pgrpc.flatten`: `analyze_flatten_dependencies(composite_type, types)`
  expands fields of a `CompositeType` marked `flatten=True` into their
  parent (`addr` with `street` becomes `addr_street`), raising
  `CyclicDependencyError`, `InvalidFlattenTargetError` or
  `TypeNotFoundError`; plus `generate_field_name`, `has_field_conflict` and
  `resolve_field_conflicts`.
- `pgrpc.parse_domain`: `non_null_cols_from_checks(["check ((value).description is not null)"])`
  returns `{"description"}`; it raises `ValueError` on text it cannot parse.

## What this package does not do

- It does not connect to a database or run introspection queries; indexes
  are built from rows and JSON you supply.
- It does not parse PL/pgSQL; exception analysis works on a parse tree
  given as JSON, and covers only strict statements and comment markers, not
  `RAISE` statements or the constraints touched by a function's queries.
- It does not generate the per-schema code files. The `pgrpc` command
  stops after validating the configuration.