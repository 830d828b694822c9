"""
Declarative Class Validation.

Validation for a model class can be declared as a YAML document (or the
equivalent dict) instead of property rules:

    options:
      allow_unknown: true
    properties:
      theID:
        type: int
        id: true
        required: true
        min: 1
      name:
        type: str
        required: true
        min_length: 3
        max_length: 10
      tags:
        type: list
        items:
          type: str

The document is checked against ``DECLARATION_SCHEMA`` (JSON Schema, Draft
2020-12) before anything is built; every problem is reported at once.

A declared property replaces any property rules of the same name on the
class it is applied to.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import pydantic
import yaml
from jsonschema import Draft202012Validator

from ..exceptions import PreconditionError
from ..settings import ValidationOptions
from .constraints import Constraint
from .decorators import declare_property, identifier, raw_constraint
from .metadata import registry

logger = logging.getLogger(__name__)

_MISSING = object()

PROPERTY_TYPES = ["str", "int", "float", "bool", "big_int", "datetime", "list", "dict", "any"]

DECLARATION_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "required": ["properties"],
    "properties": {
        "options": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "abort_early": {"type": "boolean"},
                "allow_unknown": {"type": "boolean"},
                "strip_unknown": {"type": "boolean"},
                "convert": {"type": ["boolean", "null"]},
            },
        },
        "properties": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"$ref": "#/$defs/property"},
        },
    },
    "$defs": {
        "property": {
            "type": "object",
            "additionalProperties": False,
            "required": ["type"],
            "properties": {
                "type": {"enum": PROPERTY_TYPES},
                "id": {"type": "boolean"},
                "required": {"type": "boolean"},
                "allow_null": {"type": "boolean"},
                "allow_empty": {"type": "boolean"},
                "convert": {"type": "boolean"},
                "is_utc": {"type": "boolean"},
                "allow_single": {"type": "boolean"},
                "default": {},
                "min_length": {"type": "integer", "minimum": 0},
                "max_length": {"type": "integer", "minimum": 0},
                "pattern": {"type": "string"},
                "min": {"type": "number"},
                "max": {"type": "number"},
                "choices": {"type": "array", "minItems": 1},
                "items": {"$ref": "#/$defs/property"},
                "properties": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/$defs/property"},
                },
            },
        },
    },
}

_DECLARATION_VALIDATOR = Draft202012Validator(DECLARATION_SCHEMA)


class PropertySchema:
    """
    Declared validation of a single property.

    Supports types: str, int, float, bool, big_int, datetime, list, dict, any

    Attributes:
        type: Property type
        id: Whether the property is (part of) the identifier
        required: Whether the property must be present
        allow_null: Whether an explicit null is accepted
        default: Default value when missing (``_MISSING`` if none)
        min_length / max_length: Length bounds (str, list)
        min / max: Value bounds (int, float, big_int)
        pattern: Regex pattern (str only)
        choices: Allowed values
        items: Schema of list items (list only)
        properties: Nested property schemas (dict only)
    """

    SIZED_TYPES = {"str", "list"}
    NUMERIC_TYPES = {"int", "float", "big_int"}

    def __init__(
        self,
        type: str,
        id: bool = False,
        required: bool = False,
        allow_null: bool = False,
        allow_empty: bool = True,
        convert: bool = False,
        is_utc: bool = False,
        allow_single: bool = False,
        default: Any = _MISSING,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        pattern: Optional[str] = None,
        min: Optional[Union[int, float]] = None,
        max: Optional[Union[int, float]] = None,
        choices: Optional[List[Any]] = None,
        items: Optional[Mapping[str, Any]] = None,
        properties: Optional[Mapping[str, Any]] = None,
    ):
        if type not in PROPERTY_TYPES:
            raise PreconditionError(
                f"Invalid type '{type}'. Must be one of: {', '.join(PROPERTY_TYPES)}"
            )
        if (min_length is not None or max_length is not None) and type not in self.SIZED_TYPES:
            raise PreconditionError(f"min_length/max_length do not apply to type '{type}'")
        if (min is not None or max is not None) and type not in self.NUMERIC_TYPES:
            raise PreconditionError(f"min/max do not apply to type '{type}'")

        self.type = type
        self.id = id
        self.required = required
        self.allow_null = allow_null
        self.allow_empty = allow_empty
        self.convert = convert
        self.is_utc = is_utc
        self.allow_single = allow_single
        self.default = default
        self.min_length = min_length
        self.max_length = max_length
        self.pattern = pattern
        self.min = min
        self.max = max
        self.choices = choices

        self.items: Optional["PropertySchema"] = None
        if items is not None:
            self.items = PropertySchema(**items)

        self.properties: Optional[Dict[str, "PropertySchema"]] = None
        if properties is not None:
            self.properties = {
                name: PropertySchema(**config) for name, config in properties.items()
            }

    def _base(self) -> Constraint:
        if self.type == "str":
            return Constraint.string(self.convert)
        if self.type == "int":
            return Constraint.integer(self.convert)
        if self.type == "float":
            return Constraint.number(self.convert)
        if self.type == "bool":
            return Constraint.boolean(self.convert)
        if self.type == "big_int":
            return Constraint.big_integer(self.convert)
        if self.type == "datetime":
            return Constraint.datetime(is_utc=self.is_utc, convert=self.convert)
        if self.type == "list":
            items = self.items.to_constraint() if self.items is not None else None
            return Constraint.array(items, allow_single=self.allow_single)
        if self.type == "dict":
            if self.properties is None:
                return Constraint.of(Dict[str, Any])
            return Constraint.object(
                {name: prop.to_constraint() for name, prop in self.properties.items()}
            )
        return Constraint.any()

    def to_constraint(self) -> Constraint:
        """Build the constraint expression this declaration describes."""
        schema = self._base()
        if not self.allow_empty:
            schema = schema.disallow_empty()
        for lower in (self.min_length, self.min):
            if lower is not None:
                schema = schema.min(lower)
        for upper in (self.max_length, self.max):
            if upper is not None:
                schema = schema.max(upper)
        if self.pattern is not None:
            schema = schema.regex(self.pattern)
        if self.choices is not None:
            schema = schema.only(*self.choices)
        if self.default is not _MISSING:
            schema = schema.default(self.default)
        if self.allow_null:
            schema = schema.allow_null()
        if self.required:
            schema = schema.required()
        return schema

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {"type": self.type}
        for flag, off in (
            ("id", False),
            ("required", False),
            ("allow_null", False),
            ("allow_empty", True),
            ("convert", False),
            ("is_utc", False),
            ("allow_single", False),
        ):
            value = getattr(self, flag)
            if value != off:
                result[flag] = value
        if self.default is not _MISSING:
            result["default"] = self.default
        for key in ("min_length", "max_length", "pattern", "min", "max", "choices"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.items is not None:
            result["items"] = self.items.to_dict()
        if self.properties is not None:
            result["properties"] = {
                name: prop.to_dict() for name, prop in self.properties.items()
            }
        return result

    def __repr__(self) -> str:
        attrs = [f"type={self.type!r}"]
        if self.id:
            attrs.append("id=True")
        if self.required:
            attrs.append("required=True")
        return f"PropertySchema({', '.join(attrs)})"


class ClassSchema:
    """
    Declared validation of a model class.

    Attributes:
        properties: Property name -> PropertySchema, in document order
        options: Class validation options, if declared
    """

    def __init__(
        self,
        properties: Dict[str, PropertySchema],
        options: Optional[ValidationOptions] = None,
    ):
        self.properties = properties
        self.options = options

    @classmethod
    def from_yaml(cls, source: Union[str, Mapping[str, Any]]) -> "ClassSchema":
        """
        Parse a declaration from YAML text or an already loaded mapping.

        Args:
            source: YAML document, or the dict it would load to

        Returns:
            ClassSchema instance

        Raises:
            PreconditionError: If the document is not valid YAML or does
                not match ``DECLARATION_SCHEMA``.

        Example:
            >>> schema = ClassSchema.from_yaml({
            ...     "properties": {
            ...         "theID": {"type": "int", "id": True},
            ...         "name": {"type": "str", "required": True},
            ...     }
            ... })
        """
        if isinstance(source, str):
            try:
                document = yaml.safe_load(source)
            except yaml.YAMLError as e:
                raise PreconditionError(f"Invalid YAML declaration: {e}") from e
        else:
            document = source

        problems = [
            f"{error.json_path}: {error.message}"
            for error in sorted(
                _DECLARATION_VALIDATOR.iter_errors(document), key=lambda e: e.json_path
            )
        ]
        if problems:
            raise PreconditionError(
                "Invalid validation declaration:\n  " + "\n  ".join(problems),
                details={"errors": problems},
            )

        properties = {
            name: PropertySchema(**config)
            for name, config in document["properties"].items()
        }
        options = None
        if document.get("options"):
            try:
                options = ValidationOptions(**document["options"])
            except pydantic.ValidationError as e:
                raise PreconditionError(f"Invalid validation options: {e}") from e
        return cls(properties=properties, options=options)

    @property
    def id_props(self) -> List[str]:
        return [name for name, prop in self.properties.items() if prop.id]

    def apply(self, target: type) -> type:
        """Declare every property (and the options) on ``target``."""
        for name, prop in self.properties.items():
            rules = [raw_constraint(prop.to_constraint())]
            if prop.id:
                rules.append(identifier())
            declare_property(target, name, *rules)

        if self.options is not None:
            class_meta = registry.get_class_metadata(target)
            class_meta.options = self.options
            registry.set_class_metadata(target, class_meta)

        logger.debug(
            f"Applied declaration to {target.__qualname__}: "
            f"{len(self.properties)} properties, id={self.id_props}"
        )
        return target

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "properties": {name: prop.to_dict() for name, prop in self.properties.items()}
        }
        if self.options is not None:
            result["options"] = self.options.model_dump(exclude_unset=True)
        return result

    def __repr__(self) -> str:
        return f"ClassSchema(properties={list(self.properties)})"
