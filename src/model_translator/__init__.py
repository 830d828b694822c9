"""
model_translator: validation and translation of untyped input into models.

Declare validation on a model class once and get three schemas out of it:
whole (creation), partial (patch) and identifier. Translators run the
matching schema, strip unknown keys and map the result onto the class.

Example:
    >>> from typing import Annotated
    >>> from model_translator import Translatable, identifier, integer, required, string
    >>>
    >>> class Account(Translatable):
    ...     account_id: Annotated[int, identifier(), integer(min=1)] = None
    ...     name: Annotated[str, required(), string(min_length=3)] = None
    >>>
    >>> account = Account.from_dict({"name": "Gennova", "junk": True})
    >>> account.name
    'Gennova'
"""

__version__ = "0.1.0"

# Core exceptions (zero dependencies)
from .exceptions import PreconditionError

# Settings
from .settings import MappingOptions, ValidationOptions

# Validation
from .validation import (
    ClassSchema,
    Constraint,
    ModelValidator,
    PropertySchema,
    ValidationError,
    ValidationErrorDetail,
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

# Translation
from .translation import (
    ModelMapper,
    ModelTranslator,
    Translatable,
    TranslationResult,
    translatable,
)

__all__ = [
    "PreconditionError",
    "ValidationOptions",
    "MappingOptions",
    "Constraint",
    "ModelValidator",
    "create_validator",
    "ValidationError",
    "ValidationErrorDetail",
    "ClassSchema",
    "PropertySchema",
    "validate_class",
    "declare_property",
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
    "ModelMapper",
    "ModelTranslator",
    "TranslationResult",
    "Translatable",
    "translatable",
]
