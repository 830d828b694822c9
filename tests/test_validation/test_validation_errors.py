"""
Tests for validation error types.
"""

from typing import List

import pydantic
import pytest

from model_translator import ValidationError, ValidationErrorDetail
from model_translator.validation.errors import format_path


class Item(pydantic.BaseModel):
    name: str


class Order(pydantic.BaseModel):
    code: str
    items: List[Item]


def order_error(payload) -> ValidationError:
    with pytest.raises(pydantic.ValidationError) as exc_info:
        Order.model_validate(payload)
    return ValidationError.from_pydantic(exc_info.value)


class TestFormatPath:
    """Tests for dotted path rendering."""

    def test_single_key(self):
        assert format_path(("name",)) == "name"

    def test_nested_keys(self):
        assert format_path(("options", "temperature")) == "options.temperature"

    def test_list_index(self):
        assert format_path(("tags", 2, "name")) == "tags[2].name"

    def test_empty(self):
        assert format_path(()) == ""


class TestValidationErrorDetail:
    """Tests for ValidationErrorDetail."""

    def test_field_from_path(self):
        detail = ValidationErrorDetail(("items", 0, "name"), "missing", "Field required")
        assert detail.field == "items[0].name"
        assert detail.path == ("items", 0, "name")

    def test_to_dict_omits_empty_value(self):
        detail = ValidationErrorDetail(("name",), "missing", "Field required")
        assert detail.to_dict() == {
            "path": ["name"],
            "field": "name",
            "error": "missing",
            "message": "Field required",
        }

    def test_to_dict_includes_value_and_constraint(self):
        detail = ValidationErrorDetail(
            ("age",), "greater_than_equal", "too small", value=10, constraint={"ge": 15}
        )
        result = detail.to_dict()
        assert result["value"] == 10
        assert result["constraint"] == {"ge": 15}

    def test_equality_ignores_value(self):
        one = ValidationErrorDetail(("age",), "int_type", "bad", value="x")
        two = ValidationErrorDetail(("age",), "int_type", "bad", value="y")
        assert one == two
        assert len({one, two}) == 1


class TestValidationError:
    """Tests for ValidationError built from engine errors."""

    def test_from_pydantic_collects_all(self):
        """Every violation is listed, in field order."""
        error = order_error({"code": 5, "items": [{"name": "a"}, {}]})
        assert [e.field for e in error.errors] == ["code", "items[1].name"]
        assert [e.error for e in error.errors] == ["string_type", "missing"]

    def test_missing_has_no_value(self):
        error = order_error({"items": []})
        assert error.errors[0].error == "missing"
        assert error.errors[0].value is None

    def test_offending_value_kept(self):
        error = order_error({"code": 5, "items": []})
        assert error.errors[0].value == 5

    def test_prefix(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            Item.model_validate({})
        error = ValidationError.from_pydantic(exc_info.value, prefix=("items", 3))
        assert error.errors[0].field == "items[3].name"

    def test_details_alias(self):
        error = order_error({})
        assert error.details is error.errors

    def test_first(self):
        error = order_error({})
        first = error.first()
        assert len(error.errors) == 2
        assert len(first.errors) == 1
        assert first.errors[0] == error.errors[0]

    def test_to_dict(self):
        error = order_error({"code": "A1"})
        result = error.to_dict()
        assert result["success"] is False
        assert result["errors"][0]["field"] == "items"

    def test_message_lists_fields(self):
        error = order_error({})
        message = str(error)
        assert "2 error(s)" in message
        assert "code:" in message
        assert "items:" in message

    def test_is_exception(self):
        with pytest.raises(ValidationError):
            raise order_error({})
