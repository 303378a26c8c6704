"""Table and domain constraints as reported by introspection."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pgrpc.ident import CaseType, sql_to_rs_ident


class OnDelete(Enum):
    RESTRICT = "r"
    CASCADE = "c"
    NO_ACTION = "a"
    SET_NULL = "n"
    SET_DEFAULT = "d"


class ConstraintKind(Enum):
    CHECK = "c"
    FOREIGN_KEY = "f"
    PRIMARY_KEY = "p"
    UNIQUE = "u"
    NOT_NULL = "n"
    DEFAULT = "d"
    DOMAIN = "domain"


_SINGLE_COLUMN_KINDS = frozenset(
    {ConstraintKind.NOT_NULL, ConstraintKind.DEFAULT, ConstraintKind.DOMAIN}
)

_SQL_STATES = {
    ConstraintKind.CHECK: "23514",
    ConstraintKind.FOREIGN_KEY: "23503",
    ConstraintKind.PRIMARY_KEY: "23505",
    ConstraintKind.UNIQUE: "23505",
    ConstraintKind.NOT_NULL: "23502",
    ConstraintKind.DOMAIN: "23514",
}


@dataclass(frozen=True)
class Constraint:
    """A single constraint; single-column kinds hold exactly one column."""

    kind: ConstraintKind
    name: str
    columns: tuple[str, ...]
    on_delete: OnDelete | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        if self.kind in _SINGLE_COLUMN_KINDS and len(self.columns) != 1:
            raise ValueError(f"{self.kind.name} constraint needs exactly one column")
        if self.kind is ConstraintKind.FOREIGN_KEY and self.on_delete is None:
            raise ValueError("foreign key constraint needs an on_delete action")

    @property
    def column(self) -> str:
        """The column of a single-column constraint."""
        if self.kind not in _SINGLE_COLUMN_KINDS:
            raise AttributeError(f"{self.kind.name} constraint has no single column")
        return self.columns[0]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Constraint:
        """Parse the JSON object produced by the introspection query."""
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        if not isinstance(data, Mapping):
            raise ValueError("constraint JSON must be an object")
        try:
            kind = ConstraintKind(data["type"])
        except (KeyError, ValueError) as exc:
            raise ValueError(f"unknown constraint type: {data.get('type')!r}") from exc
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError("constraint JSON needs a string 'name'")

        if kind in _SINGLE_COLUMN_KINDS:
            column = data.get("column")
            if not isinstance(column, str):
                raise ValueError(f"{kind.name} constraint needs a string 'column'")
            columns: tuple[str, ...] = (column,)
        else:
            raw = data.get("columns")
            if not isinstance(raw, list) or not all(isinstance(c, str) for c in raw):
                raise ValueError(f"{kind.name} constraint needs a list of 'columns'")
            columns = tuple(raw)

        on_delete = None
        if kind is ConstraintKind.FOREIGN_KEY:
            try:
                on_delete = OnDelete(data["on_delete"])
            except (KeyError, ValueError) as exc:
                raise ValueError("foreign key constraint needs a valid 'on_delete'") from exc
        return cls(kind, name, columns, on_delete)

    def contains_columns(self, cols: Iterable[str]) -> bool:
        """Whether any of the given column names is covered by this constraint."""
        return any(col in self.columns for col in cols)

    def sql_state(self) -> str:
        """The SQLSTATE a violation of this constraint raises."""
        try:
            return _SQL_STATES[self.kind]
        except KeyError:
            raise ValueError("no SQLSTATE for DEFAULT constraint") from None

    def rs_name(self) -> str:
        return sql_to_rs_ident(self.name, CaseType.PASCAL)