import pytest

from pgrpc.config import Config
from pgrpc.exceptions import (
    ExceptionKind,
    PgException,
    get_comment_exceptions,
    get_strict_exceptions,
)
from pgrpc.pg_constraint import Constraint, ConstraintKind


def _function_body(stmt):
    return [
        {
            "PLpgSQL_function": {
                "datums": [{"PLpgSQL_var": {"refname": "x"}}],
                "action": {
                    "PLpgSQL_stmt_block": {
                        "lineno": 5,
                        "body": [stmt, {"PLpgSQL_stmt_return": {"lineno": 0}}],
                    }
                },
            }
        }
    ]


def _execsql(**extra):
    inner = {
        "lineno": 6,
        "sqlstmt": {"PLpgSQL_expr": {"query": "select id from t"}},
        "into": True,
        "target": {"PLpgSQL_row": {"refname": "(unnamed row)"}},
    }
    inner.update(extra)
    return {"PLpgSQL_stmt_execsql": inner}


def test_strict_exception():
    parsed = _function_body(_execsql(strict=True))
    assert get_strict_exceptions(parsed) == PgException.strict()


def test_non_strict_exception():
    parsed = _function_body(_execsql())
    assert get_strict_exceptions(parsed) is None


def test_strict_false_is_not_strict():
    parsed = _function_body(_execsql(strict=False))
    assert get_strict_exceptions(parsed) is None


def test_strict_must_be_boolean():
    parsed = _function_body(_execsql(strict="true"))
    assert get_strict_exceptions(parsed) is None


def test_strict_found_among_several_statements():
    parsed = _function_body(
        {"PLpgSQL_stmt_if": {"then_body": [_execsql(), _execsql(strict=True)]}}
    )
    assert get_strict_exceptions(parsed).kind is ExceptionKind.STRICT


def test_comment_exceptions():
    comment = "Does things.\n@pgrpc_throws 23505\n@pgrpc_throws P0002 when missing"
    assert get_comment_exceptions(comment) == [
        PgException.explicit("23505"),
        PgException.explicit("P0002"),
    ]


def test_comment_without_annotations():
    assert get_comment_exceptions("nothing to see @pgrpc_throws 12") == []


def test_comment_takes_five_characters():
    result = get_comment_exceptions("@pgrpc_throws   ABCDEFG")
    assert [e.code for e in result] == ["ABCDE"]


def test_rs_name_explicit_uses_code():
    assert PgException.explicit("P0001").rs_name(Config()) == "P0001"


def test_rs_name_explicit_numeric_code_prefixed():
    assert PgException.explicit("23505").rs_name(Config()) == "_23505"


def test_rs_name_explicit_mapped_through_config():
    config = Config(exceptions={"23505": "unique_violation"})
    assert PgException.explicit("23505").rs_name(config) == "UniqueViolation"


def test_rs_name_strict():
    assert PgException.strict().rs_name(Config()) == "Strict"


def test_rs_name_custom_error():
    assert PgException.custom_error("validation_error").rs_name(Config()) == "ValidationError"


def test_rs_name_constraint():
    constraint = Constraint(ConstraintKind.UNIQUE, "users_email_key", ("email",))
    exc = PgException.from_constraint(constraint)
    assert exc.rs_name(Config()) == "UsersEmailKey"
    assert exc.constraint is constraint


def test_exceptions_deduplicate_in_sets():
    found = {
        PgException.explicit("P0001"),
        PgException.explicit("P0001"),
        PgException.strict(),
        PgException.strict(),
        PgException.custom_error("validation_error"),
    }
    assert len(found) == 3


def test_explicit_requires_code():
    with pytest.raises(ValueError):
        PgException(ExceptionKind.EXPLICIT)


def test_constraint_requires_constraint():
    with pytest.raises(ValueError):
        PgException(ExceptionKind.CONSTRAINT)


def test_custom_error_requires_name():
    with pytest.raises(ValueError):
        PgException(ExceptionKind.CUSTOM_ERROR)