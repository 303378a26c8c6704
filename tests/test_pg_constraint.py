import json

import pytest

from pgrpc.pg_constraint import Constraint, ConstraintKind, OnDelete


def unique():
    return Constraint.from_json({"type": "u", "name": "users_email_key", "columns": ["email"]})


def test_from_json_unique():
    c = unique()
    assert c.kind is ConstraintKind.UNIQUE
    assert c.name == "users_email_key"
    assert c.columns == ("email",)


def test_from_json_string_input():
    c = Constraint.from_json(json.dumps({"type": "n", "name": "nn", "column": "email"}))
    assert c.kind is ConstraintKind.NOT_NULL
    assert c.column == "email"


def test_foreign_key_on_delete():
    c = Constraint.from_json(
        {"type": "f", "name": "posts_user_id_fkey", "columns": ["user_id"], "on_delete": "c"}
    )
    assert c.on_delete is OnDelete.CASCADE


def test_foreign_key_without_on_delete_rejected():
    with pytest.raises(ValueError):
        Constraint.from_json({"type": "f", "name": "fk", "columns": ["a"]})


def test_unknown_type_rejected():
    with pytest.raises(ValueError):
        Constraint.from_json({"type": "z", "name": "x", "columns": []})


def test_single_column_kind_needs_one_column():
    with pytest.raises(ValueError):
        Constraint(ConstraintKind.DOMAIN, "d", ("a", "b"))


def test_contains_columns():
    c = unique()
    assert c.contains_columns(["name", "email"]) is True
    assert c.contains_columns(["name"]) is False
    assert c.contains_columns([]) is False


def test_single_column_contains():
    c = Constraint(ConstraintKind.DEFAULT, "d", ("created_at",))
    assert c.contains_columns(["created_at"]) is True
    assert c.contains_columns(["id"]) is False


def test_sql_states():
    pk = Constraint(ConstraintKind.PRIMARY_KEY, "pk", ("id",))
    assert pk.sql_state() == unique().sql_state() == "23505"
    check = Constraint(ConstraintKind.CHECK, "users_age_check", ("age",))
    domain = Constraint(ConstraintKind.DOMAIN, "positive", ("age",))
    assert check.sql_state() == domain.sql_state()
    assert Constraint(ConstraintKind.NOT_NULL, "nn", ("a",)).sql_state() == "23502"
    fk = Constraint(ConstraintKind.FOREIGN_KEY, "fk", ("a",), OnDelete.RESTRICT)
    assert fk.sql_state() == "23503"


def test_default_has_no_sql_state():
    with pytest.raises(ValueError):
        Constraint(ConstraintKind.DEFAULT, "d", ("a",)).sql_state()


def test_rs_name():
    assert unique().rs_name() == "UsersEmailKey"


def test_hash_and_equality():
    assert unique() == unique()
    assert len({unique(), unique()}) == 1