"""Identifiers of database functions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FunctionId:
    schema: str
    name: str

    @classmethod
    def parse(cls, name: str) -> FunctionId:
        """Split ``schema.name``; an unqualified name lives in ``public``."""
        schema, sep, rest = name.partition(".")
        if sep:
            return cls(schema=schema, name=rest)
        return cls(schema="public", name=name)