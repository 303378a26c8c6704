import pytest

from pgrpc.flatten import (
    CompositeField,
    CompositeType,
    CyclicDependencyError,
    FlattenedField,
    InvalidFlattenTargetError,
    TypeNotFoundError,
    analyze_flatten_dependencies,
    generate_field_name,
    has_field_conflict,
    resolve_field_conflicts,
)


def make_field(name, type_oid, flatten, nullable=True):
    return CompositeField(name=name, type_oid=type_oid, nullable=nullable, flatten=flatten)


def make_composite(name, fields):
    return CompositeType(schema="public", name=name, fields=fields)


def test_simple_flatten():
    types = {
        100: make_composite(
            "address", [make_field("street", 1, False), make_field("city", 2, False)]
        )
    }
    person = make_composite(
        "person", [make_field("name", 3, False), make_field("addr", 100, True)]
    )
    analysis = analyze_flatten_dependencies(person, types)
    assert [f.name for f in analysis.flattened_fields] == ["name", "addr_street", "addr_city"]
    assert 100 in analysis.dependencies
    assert analysis.flattened_fields[1].original_path == ["addr", "street"]
    assert analysis.flattened_fields[2].type_oid == 2


def test_nested_flatten():
    types = {
        200: make_composite(
            "contact_info", [make_field("phone", 1, False), make_field("email", 2, False)]
        ),
        100: make_composite(
            "address",
            [
                make_field("street", 3, False),
                make_field("city", 4, False),
                make_field("contact", 200, True),
            ],
        ),
    }
    person = make_composite(
        "person", [make_field("name", 5, False), make_field("addr", 100, True)]
    )
    analysis = analyze_flatten_dependencies(person, types)
    assert [f.name for f in analysis.flattened_fields] == [
        "name",
        "addr_street",
        "addr_city",
        "addr_contact_phone",
        "addr_contact_email",
    ]
    assert analysis.dependencies == {100, 200}
    assert analysis.flattened_fields[3].original_path == ["addr", "contact", "phone"]


def test_cycle_detection():
    types = {
        100: make_composite("type_a", [make_field("field_b", 200, True)]),
        200: make_composite("type_b", [make_field("field_a", 100, True)]),
    }
    with pytest.raises(CyclicDependencyError) as info:
        analyze_flatten_dependencies(types[100], types)
    assert info.value.path == ["type_a", "type_b"]


def test_missing_type_is_reported():
    person = make_composite("person", [make_field("addr", 999, True)])
    with pytest.raises(TypeNotFoundError) as info:
        analyze_flatten_dependencies(person, {})
    assert info.value.oid == 999


def test_non_composite_target_is_rejected():
    with pytest.raises(InvalidFlattenTargetError):
        analyze_flatten_dependencies("not a composite", {})


def test_flattening_into_non_composite_is_rejected():
    person = make_composite("person", [make_field("addr", 7, True)])
    with pytest.raises(InvalidFlattenTargetError):
        analyze_flatten_dependencies(person, {7: "text"})


def test_nullability_propagates_from_parent():
    types = {
        100: make_composite("address", [make_field("street", 1, False, nullable=False)])
    }
    required = make_composite("p1", [make_field("addr", 100, True, nullable=False)])
    optional = make_composite("p2", [make_field("addr", 100, True, nullable=True)])
    assert analyze_flatten_dependencies(required, types).flattened_fields[0].nullable is False
    assert analyze_flatten_dependencies(optional, types).flattened_fields[0].nullable is True


def test_same_type_used_twice_is_not_a_cycle():
    types = {100: make_composite("address", [make_field("street", 1, False)])}
    person = make_composite(
        "person", [make_field("home", 100, True), make_field("work", 100, True)]
    )
    analysis = analyze_flatten_dependencies(person, types)
    assert [f.name for f in analysis.flattened_fields] == ["home_street", "work_street"]


def test_field_name_generation():
    assert generate_field_name("addr", "street") == "addr_street"
    assert generate_field_name("", "name") == "name"
    assert generate_field_name("contact", "phone") == "contact_phone"


def test_conflict_resolution():
    fields = [
        FlattenedField(name="name", original_path=["name"], type_oid=1, nullable=False),
        FlattenedField(
            name="name", original_path=["contact", "name"], type_oid=2, nullable=False
        ),
    ]
    resolve_field_conflicts(fields)
    assert fields[0].name == "name"
    assert fields[1].name == "name_2"


def test_has_field_conflict():
    fields = [FlattenedField(name="a", original_path=["a"], type_oid=1, nullable=True)]
    assert has_field_conflict("a", fields) is True
    assert has_field_conflict("b", fields) is False