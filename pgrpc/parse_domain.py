"""Infer non-null fields of a composite domain from its CHECK constraints."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto


class _Tok(Enum):
    IDENT = auto()
    QIDENT = auto()
    STRING = auto()
    NUMBER = auto()
    OP = auto()
    PUNCT = auto()
    CAST = auto()
    EOF = auto()


@dataclass(frozen=True)
class _Token:
    kind: _Tok
    text: str
    pos: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+|--[^\n]*|/\*.*?\*/)
    |(?P<qident>"(?:[^"]|"")*")
    |(?P<string>[eE]?'(?:[^']|'')*')
    |(?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<ident>[^\W\d][\w$]*)
    |(?P<cast>::)
    |(?P<punct>[()\[\],.;:])
    |(?P<op>[+\-*/<>=~!@\#%^&|`?]+)
    """,
    re.VERBOSE | re.DOTALL,
)

_OP_SPECIAL = set("~!@#%^&|`?")
_COMPARISON_OPS = frozenset({"<", ">", "=", "<=", ">=", "<>", "!="})
_TYPE_WORDS = frozenset({"varying", "precision", "with", "without", "time", "zone"})
_RESERVED = frozenset(
    {
        "and", "or", "not", "is", "isnull", "notnull", "in", "like", "ilike",
        "between", "similar", "when", "then", "else", "end", "check",
        "constraint", "distinct", "from", "escape", "collate", "default",
    }
)


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ValueError(f"unexpected character {text[pos]!r} at position {pos}")
        group = match.lastgroup
        value = match.group()
        if group == "op":
            cuts = [i for i in (value.find("--"), value.find("/*")) if i > 0]
            if cuts:
                value = value[: min(cuts)]
            if len(value) > 1 and not _OP_SPECIAL.intersection(value):
                value = value.rstrip("+-") or value[0]
            tokens.append(_Token(_Tok.OP, value, pos))
        elif group == "qident":
            tokens.append(_Token(_Tok.QIDENT, value[1:-1].replace('""', '"'), pos))
        elif group == "ident":
            tokens.append(_Token(_Tok.IDENT, value.lower(), pos))
        elif group == "string":
            tokens.append(_Token(_Tok.STRING, value, pos))
        elif group == "number":
            tokens.append(_Token(_Tok.NUMBER, value, pos))
        elif group == "cast":
            tokens.append(_Token(_Tok.CAST, value, pos))
        elif group == "punct":
            tokens.append(_Token(_Tok.PUNCT, value, pos))
        pos += len(value)
    tokens.append(_Token(_Tok.EOF, "", len(text)))
    return tokens


class _BoolOp(Enum):
    AND = auto()
    OR = auto()
    NOT = auto()


@dataclass(frozen=True)
class _BoolExpr:
    op: _BoolOp
    args: tuple[object, ...]


@dataclass(frozen=True)
class _NullTest:
    arg: object
    is_null: bool


@dataclass(frozen=True)
class _ColumnRef:
    fields: tuple[str | None, ...]


@dataclass(frozen=True)
class _Indirection:
    arg: object
    indirection: tuple[str | None, ...]


@dataclass(frozen=True)
class _Other:
    """Any expression whose structure the analysis does not look into."""


_OTHER = _Other()


def _make_bool(op: _BoolOp, left: object, right: object) -> _BoolExpr:
    if isinstance(left, _BoolExpr) and left.op is op:
        return _BoolExpr(op, left.args + (right,))
    return _BoolExpr(op, (left, right))


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self._i = 0

    def _peek(self, offset: int = 0) -> _Token:
        return self._tokens[min(self._i + offset, len(self._tokens) - 1)]

    def _advance(self) -> _Token:
        token = self._peek()
        if token.kind is not _Tok.EOF:
            self._i += 1
        return token

    def _error(self, what: str) -> ValueError:
        token = self._peek()
        found = token.text or "end of input"
        return ValueError(f"expected {what} at position {token.pos}, found {found!r}")

    def _is_kw(self, word: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token.kind is _Tok.IDENT and token.text == word

    def _accept_kw(self, word: str) -> bool:
        if self._is_kw(word):
            self._advance()
            return True
        return False

    def _expect_kw(self, word: str) -> None:
        if not self._accept_kw(word):
            raise self._error(word.upper())

    def _is_punct(self, char: str) -> bool:
        token = self._peek()
        return token.kind is _Tok.PUNCT and token.text == char

    def _accept_punct(self, char: str) -> bool:
        if self._is_punct(char):
            self._advance()
            return True
        return False

    def _expect_punct(self, char: str) -> None:
        if not self._accept_punct(char):
            raise self._error(repr(char))

    def _name(self) -> str:
        token = self._peek()
        if token.kind in (_Tok.IDENT, _Tok.QIDENT):
            self._advance()
            return token.text
        raise self._error("a name")

    def constraints(self) -> list[object]:
        """Parse a list of domain constraints, returning the CHECK expressions."""
        checks: list[object] = []
        while self._peek().kind is not _Tok.EOF:
            if self._accept_kw("constraint"):
                self._name()
            if self._accept_kw("check"):
                self._expect_punct("(")
                checks.append(self.expression())
                self._expect_punct(")")
                if self._accept_kw("no"):
                    self._expect_kw("inherit")
                if self._is_kw("not") and self._is_kw("valid", 1):
                    self._advance()
                    self._advance()
            elif self._accept_kw("not"):
                self._expect_kw("null")
            elif self._accept_kw("null"):
                pass
            elif self._accept_kw("default"):
                self._comparison()
            elif self._accept_kw("collate"):
                self._qualified_name()
            else:
                raise self._error("a domain constraint")
        return checks

    def expression(self) -> object:
        left = self._and()
        while self._accept_kw("or"):
            left = _make_bool(_BoolOp.OR, left, self._and())
        return left

    def _and(self) -> object:
        left = self._not()
        while self._accept_kw("and"):
            left = _make_bool(_BoolOp.AND, left, self._not())
        return left

    def _not(self) -> object:
        if self._accept_kw("not"):
            return _BoolExpr(_BoolOp.NOT, (self._not(),))
        return self._is()

    def _is(self) -> object:
        node = self._comparison()
        while True:
            if self._accept_kw("isnull"):
                node = _NullTest(node, True)
            elif self._accept_kw("notnull"):
                node = _NullTest(node, False)
            elif self._accept_kw("is"):
                negated = self._accept_kw("not")
                if self._accept_kw("null"):
                    node = _NullTest(node, not negated)
                elif any(self._accept_kw(w) for w in ("true", "false", "unknown")):
                    node = _OTHER
                elif self._accept_kw("distinct"):
                    self._expect_kw("from")
                    self._comparison()
                    node = _OTHER
                else:
                    raise self._error("NULL, TRUE, FALSE, UNKNOWN or DISTINCT after IS")
            else:
                return node

    def _comparison(self) -> object:
        node = self._pattern()
        while self._peek().kind is _Tok.OP and self._peek().text in _COMPARISON_OPS:
            self._advance()
            self._pattern()
            node = _OTHER
        return node

    def _pattern(self) -> object:
        node = self._arith()
        while True:
            offset = 1 if self._is_kw("not") else 0
            if self._is_kw("in", offset):
                self._i += offset + 1
                self._expect_punct("(")
                self._expression_list(")")
                node = _OTHER
            elif self._is_kw("like", offset) or self._is_kw("ilike", offset):
                self._i += offset + 1
                self._arith()
                if self._accept_kw("escape"):
                    self._arith()
                node = _OTHER
            elif self._is_kw("similar", offset):
                self._i += offset + 1
                self._expect_kw("to")
                self._arith()
                if self._accept_kw("escape"):
                    self._arith()
                node = _OTHER
            elif self._is_kw("between", offset):
                self._i += offset + 1
                self._accept_kw("symmetric")
                self._arith()
                self._expect_kw("and")
                self._arith()
                node = _OTHER
            else:
                return node

    def _arith(self) -> object:
        node = self._unary()
        while self._peek().kind is _Tok.OP and self._peek().text not in _COMPARISON_OPS:
            self._advance()
            self._unary()
            node = _OTHER
        return node

    def _unary(self) -> object:
        if self._peek().kind is _Tok.OP:
            self._advance()
            self._unary()
            return _OTHER
        return self._postfix()

    def _postfix(self) -> object:
        node = self._primary()
        while True:
            if self._peek().kind is _Tok.CAST:
                self._advance()
                self._type_name()
                node = _OTHER
            elif self._accept_kw("collate"):
                self._qualified_name()
                node = _OTHER
            elif self._is_punct("["):
                self._subscript()
                node = _OTHER
            else:
                return node

    def _qualified_name(self) -> None:
        self._name()
        while self._accept_punct("."):
            self._name()

    def _type_name(self) -> None:
        self._qualified_name()
        while True:
            if self._peek().kind is _Tok.IDENT and self._peek().text in _TYPE_WORDS:
                self._advance()
            elif self._accept_punct("("):
                self._expression_list(")")
            elif self._accept_punct("["):
                if self._peek().kind is _Tok.NUMBER:
                    self._advance()
                self._expect_punct("]")
            else:
                return

    def _expression_list(self, closing: str) -> int:
        count = 0
        if self._accept_punct(closing):
            return count
        while True:
            self.expression()
            count += 1
            if self._accept_punct(closing):
                return count
            self._expect_punct(",")

    def _subscript(self) -> None:
        self._expect_punct("[")
        if not self._is_punct(":") and not self._is_punct("]"):
            self.expression()
        if self._accept_punct(":") and not self._is_punct("]"):
            self.expression()
        self._expect_punct("]")

    def _indirection(self) -> tuple[str | None, ...]:
        items: list[str | None] = []
        while True:
            if self._accept_punct("."):
                token = self._peek()
                if token.kind is _Tok.OP and token.text == "*":
                    self._advance()
                    items.append(None)
                else:
                    items.append(self._name())
            elif self._is_punct("["):
                self._subscript()
                items.append(None)
            else:
                return tuple(items)

    def _primary(self) -> object:
        token = self._peek()
        if token.kind in (_Tok.STRING, _Tok.NUMBER):
            self._advance()
            return _OTHER
        if token.kind is _Tok.PUNCT and token.text == "(":
            self._advance()
            inner = self.expression()
            if self._accept_punct(","):
                self._expression_list(")")
                inner = _OTHER
            else:
                self._expect_punct(")")
            indirection = self._indirection()
            return _Indirection(inner, indirection) if indirection else inner
        if token.kind is _Tok.QIDENT:
            return self._column_or_call()
        if token.kind is _Tok.IDENT:
            word = token.text
            if word in ("true", "false", "null"):
                self._advance()
                return _OTHER
            if word == "case":
                self._advance()
                return self._case()
            if word == "array" and (self._peek(1).text in ("[", "(")):
                self._advance()
                closing = "]" if self._accept_punct("[") else ")"
                if closing == ")":
                    self._expect_punct("(")
                self._expression_list(closing)
                return _OTHER
            if word == "row" and self._peek(1).text == "(":
                self._advance()
                self._expect_punct("(")
                self._expression_list(")")
                return _OTHER
            if word in _RESERVED:
                raise self._error("an expression")
            return self._column_or_call()
        raise self._error("an expression")

    def _column_or_call(self) -> object:
        fields: list[str | None] = [self._name()]
        while self._is_punct("."):
            after = self._peek(1)
            if after.kind is _Tok.OP and after.text == "*":
                self._advance()
                self._advance()
                fields.append(None)
                break
            self._advance()
            fields.append(self._name())
        if self._accept_punct("("):
            self._accept_kw("distinct")
            star = self._peek()
            if star.kind is _Tok.OP and star.text == "*":
                self._advance()
                self._expect_punct(")")
            else:
                self._expression_list(")")
            return _OTHER
        if len(fields) == 1 and self._peek().kind is _Tok.STRING:
            self._advance()
            return _OTHER
        node = _ColumnRef(tuple(fields))
        if self._is_punct("["):
            return _Indirection(node, self._indirection())
        return node

    def _case(self) -> object:
        if not self._is_kw("when"):
            self.expression()
        while self._accept_kw("when"):
            self.expression()
            self._expect_kw("then")
            self.expression()
        if self._accept_kw("else"):
            self.expression()
        self._expect_kw("end")
        return _OTHER


def _parse_checks(check_strs: Iterable[str]) -> list[object]:
    """Parse constraint definitions and return their CHECK expressions."""
    return _Parser("".join(check_strs)).constraints()


def non_null_cols_from_checks(check_strs: Iterable[str]) -> set[str]:
    """Fields that a domain's CHECK constraints force to be non-null.

    Raises ``ValueError`` when the constraint definitions do not parse.
    """
    return collect_non_null_columns(_parse_checks(check_strs))


def collect_non_null_columns(constraints: Iterable[object]) -> set[str]:
    """Collect non-null fields from parsed CHECK expressions."""
    columns: set[str] = set()
    for expr in constraints:
        if expr is not None:
            _collect_from_node(expr, columns)
    return columns


def _is_value_ref(node: object, exact: bool) -> bool:
    if not isinstance(node, _ColumnRef) or not node.fields:
        return False
    if exact and len(node.fields) != 1:
        return False
    first = node.fields[0]
    return first is not None and first.lower() == "value"


def _collect_from_node(node: object, columns: set[str]) -> None:
    if isinstance(node, _BoolExpr):
        if node.op is _BoolOp.AND:
            for arg in node.args:
                _collect_from_node(arg, columns)
        elif node.op is _BoolOp.OR:
            null_branches = [i for i, arg in enumerate(node.args) if _is_value_null_test(arg)]
            if len(null_branches) != 1:
                return
            others = [arg for i, arg in enumerate(node.args) if i != null_branches[0]]
            direct: set[str] = set()
            for arg in others:
                _collect_direct_not_nulls(arg, direct)
            if direct and len(node.args) - 1 == sum(map(_is_direct_not_null_test, others)):
                columns.update(direct)
    elif isinstance(node, _NullTest):
        if not node.is_null:
            _collect_from_node(node.arg, columns)
    elif isinstance(node, _Indirection):
        if _is_value_ref(node.arg, exact=False) and isinstance(node.indirection[0], str):
            columns.add(node.indirection[0])


def _is_value_null_test(node: object) -> bool:
    return isinstance(node, _NullTest) and node.is_null and _is_value_ref(node.arg, exact=True)


def _direct_not_null_field(node: object) -> str | None:
    """The field of a ``(value).field is not null`` test, if it is one."""
    if not isinstance(node, _NullTest) or node.is_null:
        return None
    arg = node.arg
    if not isinstance(arg, _Indirection) or not _is_value_ref(arg.arg, exact=True):
        return None
    return arg.indirection[0]


def _is_direct_not_null_test(node: object) -> bool:
    if not isinstance(node, _NullTest) or node.is_null:
        return False
    arg = node.arg
    return isinstance(arg, _Indirection) and _is_value_ref(arg.arg, exact=True)


def _collect_direct_not_nulls(node: object, columns: set[str]) -> None:
    if isinstance(node, _NullTest):
        field_name = _direct_not_null_field(node)
        if field_name is not None:
            columns.add(field_name)
    elif isinstance(node, _BoolExpr) and node.op is _BoolOp.AND:
        for arg in node.args:
            _collect_direct_not_nulls(arg, columns)