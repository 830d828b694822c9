"""
Tests for property rules and class-level validation declarations.
"""

from typing import Annotated, List

import pytest

from model_translator import (
    Constraint,
    PreconditionError,
    array,
    big_integer,
    boolean,
    create_validator,
    datetime,
    declare_property,
    default_as,
    identifier,
    integer,
    number,
    only,
    raw_constraint,
    required,
    string,
    validate_class,
)
from model_translator.validation import declare_annotations, get_class_metadata, registry


@validate_class()
class Person:
    theID: Annotated[int, identifier(), required(), number(min=1)] = None
    name: Annotated[str, required(), string(min_length=3, max_length=10, pattern=r"^[\d\w -]+$")] = None
    address: Annotated[str, required(), string(allow_empty=False)] = None
    age: Annotated[int, number(min=15, max=99)] = None
    gender: Annotated[str, only("male", "female")] = None
    plain: int = None


@validate_class()
class Employee(Person):
    badge: Annotated[str, required(), string(max_length=5)] = None
    name: Annotated[str, string(max_length=20)] = None


@validate_class(
    schema_map_model={"title": Constraint.string().required()},
    options={"allow_unknown": False},
)
class Overridden:
    theID: Annotated[int, identifier(), integer(min=1)] = None
    name: Annotated[str, required()] = None


class TestAnnotatedRules:
    """Rules declared with typing.Annotated."""

    def test_properties_in_declaration_order(self):
        meta = get_class_metadata(Person)
        assert list(meta.props) == ["theID", "name", "address", "age", "gender"]
        assert meta.id_props == ["theID"]

    def test_whole(self):
        validator = create_validator(Person)
        error, value = validator.whole({
            "theID": 1,
            "name": "Gennova123",
            "address": "Unlimited length street name",
            "age": 18,
            "gender": "male",
        })
        assert error is None
        assert value["gender"] == "male"

    def test_all_violations(self):
        validator = create_validator(Person)
        error, _ = validator.whole({
            "name": "name longer than ten",
            "address": "",
            "age": 10,
            "gender": "other",
        })
        assert [e.field for e in error.details] == ["name", "address", "age", "gender"]
        assert [e.error for e in error.details] == [
            "string_too_long",
            "string_empty",
            "greater_than_equal",
            "one_of",
        ]

    def test_partial(self):
        validator = create_validator(Person)
        assert validator.partial({"theID": 5}) == (None, {"theID": 5})
        error, _ = validator.partial({})
        assert error.details[0].field == "theID"

    def test_scanned_once(self):
        rules_before = len(get_class_metadata(Person).props["name"].rules)
        declare_annotations(Person)
        assert len(get_class_metadata(Person).props["name"].rules) == rules_before


class TestSubclassIsolation:
    """Subclass declarations never leak into the parent."""

    def test_parent_unchanged(self):
        parent = create_validator(Person)
        assert "badge" not in parent.schema_map_model
        assert parent.schema_map_model["name"].bounds["max_length"] == 10

    def test_child_inherits_and_extends(self):
        child = create_validator(Employee)
        assert list(child.schema_map_model) == ["name", "address", "age", "gender", "badge"]
        assert list(child.schema_map_id) == ["theID"]

    def test_redeclared_property_starts_fresh(self):
        """A property redeclared by the subclass drops the parent's rules for it."""
        name = create_validator(Employee).schema_map_model["name"]
        assert name.bounds == {"max_length": 20}
        assert name.is_required is False


class TestClassLevelMaps:
    """Explicit class maps override property rules for their side."""

    def test_model_side_replaced(self):
        validator = create_validator(Overridden)
        assert list(validator.schema_map_model) == ["title"]
        assert list(validator.schema_map_id) == ["theID"]

    def test_options_stored(self):
        error, _ = create_validator(Overridden).whole({"title": "Dr", "junk": 1})
        assert error.details[0].error == "extra_forbidden"


class TestRuleBuilders:
    """Tests for individual property rules."""

    def build(self, *rules):
        class Target:
            pass

        declare_property(Target, "value", *rules)
        return create_validator(Target).schema_map_model["value"]

    def test_required_allow_null(self):
        schema = self.build(required(allow_null=True))
        assert schema.is_required
        assert schema.nullable

    def test_stub_type_is_string(self):
        assert self.build(required()).kind == "string"

    def test_integer(self):
        schema = self.build(integer(min=1, max=5, convert=True))
        assert schema.kind == "integer"
        assert schema.bounds == {"ge": 1, "le": 5}
        assert schema.convert is True

    def test_boolean(self):
        assert self.build(boolean(convert=True)).convert is True

    def test_big_integer(self):
        schema = self.build(big_integer())
        assert schema.kind == "big_integer"
        assert schema.convert is False

    def test_datetime(self):
        schema = self.build(datetime(is_utc=True, convert=True))
        assert schema.kind == "datetime"
        assert schema.is_utc
        assert schema.convert

    def test_array_allows_single_by_default(self):
        schema = self.build(array(Constraint.string()))
        assert schema.kind == "array"
        assert schema.allow_single is True

    def test_default_as(self):
        assert self.build(default_as("active")).default == "active"

    def test_rule_order_independent_of_type(self):
        """Type rules can come after value rules."""
        schema = self.build(required(), only(1, 2), number())
        assert schema.kind == "number"
        assert schema.allowed == (1, 2)
        assert schema.is_required

    def test_raw_constraint_overrides(self):
        raw = Constraint.integer().min(1)
        assert self.build(string(min_length=3), raw_constraint(raw)) is raw

    def test_raw_constraint_needs_expression(self):
        with pytest.raises(PreconditionError):
            raw_constraint(None)

    def test_identifier_only(self):
        class Keyed:
            pass

        declare_property(Keyed, "code", identifier())
        validator = create_validator(Keyed)
        assert validator.schema_map_id["code"].kind == "string"
        assert validator.schema_map_model == {}


class TestDeclareProperty:
    """Tests for imperative declarations."""

    def test_rejects_empty_name(self):
        class Target:
            pass

        with pytest.raises(PreconditionError):
            declare_property(Target, "", required())

    def test_rejects_non_rules(self):
        class Target:
            pass

        with pytest.raises(PreconditionError):
            declare_property(Target, "name", Constraint.string())
        assert not registry.has_own_metadata(Target)

    def test_annotated_without_rules_ignored(self):
        @validate_class()
        class Tagged:
            tags: Annotated[List[str], "documentation only"] = None

        assert create_validator(Tagged) is None
