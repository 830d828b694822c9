"""
Core Exception Classes for model_translator.

Validation failures are data, not defects: they are carried by
``model_translator.validation.errors.ValidationError`` and returned by the
validators. This module holds the other kind of failure, a programmer-usage
defect, plus the small guard helpers that raise it.

Design Principle:
    exceptions.py (BASE - zero dependencies)
        ^
    validation/ (metadata, compiler, validator)
        ^
    translation/ (mapper, translator, translatable)
"""

from typing import Any, Optional


class PreconditionError(Exception):
    """
    Raised when the library is used incorrectly.

    Examples are a validator built without any schema, a property rule
    applied to something that is not a class attribute, or validation
    enabled on a translator that has no validator. These are never routed
    to error callbacks and never retried.

    Attributes:
        message: Human-readable description of the broken precondition.
        details: Optional extra context (e.g. a list of problems).
    """

    def __init__(self, message: str = "", details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return f"PreconditionError({self.message!r})"


def assert_arg_defined(name: str, value: Any) -> None:
    """Raise PreconditionError if argument ``name`` is None."""
    if value is None:
        raise PreconditionError(f"Argument '{name}' must be defined!")


def assert_is_truthy(value: Any, message: str) -> None:
    """Raise PreconditionError with ``message`` if ``value`` is falsy."""
    if not value:
        raise PreconditionError(message)
