"""Exceptions a database function can raise, found by static analysis."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from pgrpc.config import Config
from pgrpc.ident import CaseType, sql_to_rs_ident
from pgrpc.pg_constraint import Constraint

_COMMENT_THROWS = re.compile(r"@pgrpc_throws\s+([a-zA-Z0-9]{5})")
_EXECSQL_KEY = "PLpgSQL_stmt_execsql"


class ExceptionKind(Enum):
    EXPLICIT = auto()
    CONSTRAINT = auto()
    STRICT = auto()
    CUSTOM_ERROR = auto()


@dataclass(frozen=True)
class PgException:
    """One kind of error a function may raise.

    ``code`` is set for explicit raises, ``constraint`` for constraint
    violations and ``name`` for custom error types from the errors schema.
    """

    kind: ExceptionKind
    code: str | None = None
    constraint: Constraint | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ExceptionKind.EXPLICIT and not isinstance(self.code, str):
            raise ValueError("an explicit exception needs a SQLSTATE code")
        if self.kind is ExceptionKind.CONSTRAINT and self.constraint is None:
            raise ValueError("a constraint exception needs a constraint")
        if self.kind is ExceptionKind.CUSTOM_ERROR and not isinstance(self.name, str):
            raise ValueError("a custom error exception needs an error type name")

    @classmethod
    def explicit(cls, code: str) -> PgException:
        return cls(ExceptionKind.EXPLICIT, code=code)

    @classmethod
    def from_constraint(cls, constraint: Constraint) -> PgException:
        return cls(ExceptionKind.CONSTRAINT, constraint=constraint)

    @classmethod
    def strict(cls) -> PgException:
        return cls(ExceptionKind.STRICT)

    @classmethod
    def custom_error(cls, name: str) -> PgException:
        return cls(ExceptionKind.CUSTOM_ERROR, name=name)

    def rs_name(self, config: Config) -> str:
        """The Rust variant name for this exception.

        Explicit SQLSTATE codes are renamed through ``config.exceptions``
        when a mapping exists.
        """
        if self.kind is ExceptionKind.EXPLICIT:
            assert self.code is not None
            return sql_to_rs_ident(config.exceptions.get(self.code, self.code), CaseType.PASCAL)
        if self.kind is ExceptionKind.STRICT:
            return "Strict"
        if self.kind is ExceptionKind.CONSTRAINT:
            assert self.constraint is not None
            return self.constraint.rs_name()
        assert self.name is not None
        return sql_to_rs_ident(self.name, CaseType.PASCAL)


def _find_key(node: Any, key: str) -> Iterator[Any]:
    """Yield every value stored under ``key`` at any depth."""
    if isinstance(node, dict):
        for k, value in node.items():
            if k == key:
                yield value
            yield from _find_key(value, key)
    elif isinstance(node, list):
        for item in node:
            yield from _find_key(item, key)


def _is_strict_stmt(stmt: Any) -> bool:
    if isinstance(stmt, dict):
        return stmt.get("strict") is True
    if isinstance(stmt, list):
        return any(isinstance(item, dict) and item.get("strict") is True for item in stmt)
    return False


def get_strict_exceptions(parsed: Any) -> PgException | None:
    """A strict exception if the parsed body runs any ``INTO STRICT`` statement."""
    if any(_is_strict_stmt(stmt) for stmt in _find_key(parsed, _EXECSQL_KEY)):
        return PgException.strict()
    return None


def get_comment_exceptions(comment: str) -> list[PgException]:
    """Exceptions declared in a comment with ``@pgrpc_throws <SQLSTATE>``."""
    return [PgException.explicit(m.group(1)) for m in _COMMENT_THROWS.finditer(comment)]