"""Conversion of SQL identifiers into valid Rust identifiers."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from enum import Enum, auto


class CaseType(Enum):
    SNAKE = auto()
    PASCAL = auto()


class _Mode(Enum):
    BOUNDARY = auto()
    LOWER = auto()
    UPPER = auto()


_RUST_KEYWORDS = frozenset(
    {
        "_", "abstract", "as", "async", "await", "become", "box", "break", "const",
        "continue", "crate", "do", "dyn", "else", "enum", "extern", "false", "final",
        "fn", "for", "if", "impl", "in", "let", "loop", "macro", "match", "mod", "move",
        "mut", "override", "priv", "pub", "ref", "return", "Self", "self", "static",
        "struct", "super", "trait", "true", "try", "type", "typeof", "unsafe",
        "unsized", "use", "virtual", "where", "while", "yield",
    }
)


def _split_chunk(word: str) -> Iterator[str]:
    mode = _Mode.BOUNDARY
    start = 0
    for i, (c, nxt) in enumerate(zip(word, word[1:])):
        if c.islower():
            next_mode = _Mode.LOWER
        elif c.isupper():
            next_mode = _Mode.UPPER
        else:
            next_mode = mode
        if next_mode is _Mode.LOWER and nxt.isupper():
            yield word[start : i + 1]
            start = i + 1
            mode = _Mode.BOUNDARY
        elif mode is _Mode.UPPER and c.isupper() and nxt.islower():
            yield word[start:i]
            start = i
            mode = _Mode.BOUNDARY
        else:
            mode = next_mode
    yield word[start:]


def split_words(name: str) -> list[str]:
    """Split a name into words on separators and case changes."""
    return [
        word
        for is_word, chars in itertools.groupby(name, str.isalnum)
        if is_word
        for word in _split_chunk("".join(chars))
    ]


def to_snake_case(name: str) -> str:
    return "_".join(word.lower() for word in split_words(name))


def to_pascal_case(name: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(name))


def _is_valid_ident(name: str) -> bool:
    return name.isidentifier() and name not in _RUST_KEYWORDS


def sql_to_rs_ident(name: str, case_type: CaseType) -> str:
    """Turn an arbitrary SQL name into a Rust identifier, raw if it must be."""
    prefix = "_" if name[:1].isnumeric() else ""
    if case_type is CaseType.SNAKE:
        converted = to_snake_case(name)
    elif name.startswith("_"):
        converted = "_" + to_pascal_case(name)
    else:
        converted = to_pascal_case(name)
    result = prefix + converted
    return result if _is_valid_ident(result) else "r#" + result