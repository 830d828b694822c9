"""
Model Validation Module.

Declares, compiles and runs validation for model classes:
- Constraint expressions (string, number, integer, boolean, big_integer,
  datetime, array, object)
- Per-class metadata registry with inheritance by cloning
- Whole, partial and identifier schemas derived from one declaration
- Aggregated, path-qualified validation errors

Usage:
    @validate_class()
    class Account:
        account_id: Annotated[int, identifier(), required(), integer(min=1)] = None
        name: Annotated[str, required(), string(min_length=3)] = None

Example:
    >>> from model_translator.validation import create_validator
    >>> validator = create_validator(Account)
    >>> error, value = validator.whole({"name": "Gennova", "junk": 1})
    >>> print(value)  # {"name": "Gennova"}
"""

from .constraints import Constraint
from .errors import ValidationError, ValidationErrorDetail
from .metadata import (
    ClassValidationMetadata,
    MetadataRegistry,
    PropertyValidationMetadata,
    delete_class_metadata,
    extract_property_metadata,
    get_class_metadata,
    registry,
    set_class_metadata,
    set_property_metadata,
)
from .compiler import CompiledSchema, build_prop_schema, build_schema_maps, compile_schema
from .validator import ModelValidator, create_validator
from .decorators import (
    PropertyRule,
    array,
    big_integer,
    boolean,
    datetime,
    declare_annotations,
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
from .declarative import ClassSchema, PropertySchema

__all__ = [
    "Constraint",
    "ValidationError",
    "ValidationErrorDetail",
    "ClassValidationMetadata",
    "MetadataRegistry",
    "PropertyValidationMetadata",
    "registry",
    "get_class_metadata",
    "set_class_metadata",
    "delete_class_metadata",
    "set_property_metadata",
    "extract_property_metadata",
    "CompiledSchema",
    "build_prop_schema",
    "build_schema_maps",
    "compile_schema",
    "ModelValidator",
    "create_validator",
    "PropertyRule",
    "validate_class",
    "declare_property",
    "declare_annotations",
    "required",
    "string",
    "number",
    "integer",
    "boolean",
    "big_integer",
    "datetime",
    "array",
    "only",
    "default_as",
    "identifier",
    "raw_constraint",
    "ClassSchema",
    "PropertySchema",
]
