"""
Constraint Expressions.

A ``Constraint`` is a declarative, immutable description of what a single
value must look like: its type, bounds, pattern, allowed values, default,
and whether it must be present. Every fluent method returns a new
expression, so a base expression can be shared and refined freely.

Constraints are not evaluated here. ``Constraint.annotation()`` and
``Constraint.field()`` translate the expression into a pydantic type
annotation and ``FieldInfo``; pydantic does the actual validation.

Supported kinds: string, number, integer, boolean, big_integer, datetime,
array, object, any, raw (any pydantic-compatible annotation).

Example:
    >>> name = Constraint.string().min(3).max(10).required()
    >>> age = Constraint.number().min(15).max(99).allow_null()
    >>> tags = Constraint.array(Constraint.string()).max(5)
    >>> name.optional().is_required
    False
"""

import copy
import re
from datetime import datetime as _datetime
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import pydantic
from pydantic import AfterValidator, BeforeValidator, Field, PlainSerializer, TypeAdapter
from pydantic.fields import FieldInfo
from pydantic_core import PydanticCustomError, PydanticKnownError, PydanticUndefined

from ..exceptions import PreconditionError

BIG_INTEGER_PATTERN = r"^[-+]?\d+$"

_DATETIME = TypeAdapter(_datetime)

# Kinds whose ``convert`` flag means "coerce compatible input" and can
# therefore be forced on or off for a whole validation pass.
COERCIBLE_KINDS = {"string", "number", "integer", "boolean"}


def _passthrough(value: Any) -> Any:
    return value


def _integral(value: float) -> Union[int, float]:
    # Numbers are one type: 18 and 18.0 both come back as 18.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _int_to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _wrap_single(value: Any) -> Any:
    if value is None or isinstance(value, (list, tuple, set, frozenset)):
        return value
    return [value]


def _reject_empty(value: str) -> str:
    if value == "":
        raise PydanticCustomError("string_empty", "String should not be empty")
    return value


def _same_value(value: Any, allowed: Any) -> bool:
    # bool is an int subclass, but True is not 1 here.
    if isinstance(value, bool) or isinstance(allowed, bool):
        return type(value) is type(allowed) and value == allowed
    if isinstance(value, (int, float)) and isinstance(allowed, (int, float)):
        return value == allowed
    return type(value) is type(allowed) and value == allowed


def _one_of(values: Tuple[Any, ...]) -> Callable[[Any], Any]:
    expected = ", ".join(repr(v) for v in values)

    def check(value: Any) -> Any:
        if not any(_same_value(value, allowed) for allowed in values):
            raise PydanticCustomError(
                "one_of",
                "Input should be one of {expected}",
                {"expected": expected},
            )
        return value

    return check


def _first_match(alternatives: Tuple[Any, ...]) -> Callable[[Any], Any]:
    # Alternatives are tried in declared order; a bad item is one violation.
    adapters = [TypeAdapter(alternative) for alternative in alternatives]

    def check(value: Any) -> Any:
        for adapter in adapters:
            try:
                validated = adapter.validate_python(value)
            except pydantic.ValidationError:
                continue
            return adapter.dump_python(validated, by_alias=True, exclude_unset=True)
        raise PydanticCustomError(
            "item_alternatives", "Input should match one of the allowed item types"
        )

    return check


def _bounded(lower: Optional[int], upper: Optional[int]) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        number = int(value)
        if lower is not None and number < lower:
            raise PydanticKnownError("greater_than_equal", {"ge": lower})
        if upper is not None and number > upper:
            raise PydanticKnownError("less_than_equal", {"le": upper})
        return value

    return check


def _parse_datetime(value: Any) -> _datetime:
    try:
        return _DATETIME.validate_python(value)
    except pydantic.ValidationError:
        raise PydanticCustomError(
            "datetime_format", "Input should be a valid ISO 8601 datetime"
        ) from None


def _require_utc(moment: _datetime) -> None:
    offset = moment.utcoffset()
    if offset is None or offset.total_seconds() != 0:
        raise PydanticCustomError("datetime_utc", "Input should be a UTC datetime")


def _datetime_string(is_utc: bool) -> Callable[[str], str]:
    def check(value: str) -> str:
        moment = _parse_datetime(value)
        if is_utc:
            _require_utc(moment)
        return value

    return check


def _datetime_value(is_utc: bool) -> Callable[[_datetime], _datetime]:
    def check(value: _datetime) -> _datetime:
        if is_utc:
            _require_utc(value)
        return value

    return check


class Constraint:
    """
    Immutable constraint expression for one value.

    Attributes:
        kind: Expression kind (string, number, integer, ...)
        is_required: Whether the key must be present
        nullable: Whether an explicit None is accepted
        default: Default value when the key is missing (PydanticUndefined if none)
        convert: Whether compatible input is coerced (e.g. "5" -> 5)
        allowed: Tuple of allowed values, or None
    """

    def __init__(
        self,
        kind: str,
        base: Any = Any,
        *,
        convert: bool = False,
        items: Optional[Sequence["Constraint"]] = None,
        properties: Optional[Mapping[str, Any]] = None,
        allow_single: bool = False,
        is_utc: bool = False,
        translator: Optional[Callable[[Any], Any]] = None,
    ):
        self.kind = kind
        self.base = base
        self.convert = convert
        self.items: Tuple["Constraint", ...] = tuple(items or ())
        self.properties: Dict[str, Any] = dict(properties or {})
        self.allow_single = allow_single
        self.is_utc = is_utc
        self.translator = translator

        self.is_required = False
        self.nullable = False
        self.default: Any = PydanticUndefined
        self.allowed: Optional[Tuple[Any, ...]] = None
        self.allow_empty = True
        self.bounds: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def string(cls, convert: bool = False) -> "Constraint":
        return cls("string", str, convert=convert)

    @classmethod
    def number(cls, convert: bool = False) -> "Constraint":
        """Any real number; integral values come back as ``int``."""
        return cls("number", float, convert=convert)

    @classmethod
    def integer(cls, convert: bool = False) -> "Constraint":
        return cls("integer", int, convert=convert)

    @classmethod
    def boolean(cls, convert: bool = False) -> "Constraint":
        return cls("boolean", bool, convert=convert)

    @classmethod
    def big_integer(cls, convert: bool = False) -> "Constraint":
        """
        Arbitrarily large integer.

        With ``convert=False`` the value is kept as a decimal string
        (numbers are stringified); with ``convert=True`` it becomes ``int``.
        """
        return cls("big_integer", int if convert else str, convert=convert)

    @classmethod
    def datetime(
        cls,
        is_utc: bool = False,
        translator: Optional[Callable[[Any], Any]] = None,
        convert: bool = False,
    ) -> "Constraint":
        """
        ISO 8601 date-time.

        Args:
            is_utc: Require a UTC offset.
            translator: Callable applied to the parsed ``datetime`` when
                ``convert`` is true (defaults to keeping the ``datetime``).
            convert: Return the parsed value instead of the input string.
        """
        return cls(
            "datetime",
            _datetime if convert else str,
            convert=convert,
            is_utc=is_utc,
            translator=translator,
        )

    @classmethod
    def array(
        cls,
        items: Union["Constraint", Sequence["Constraint"], None] = None,
        allow_single: bool = False,
    ) -> "Constraint":
        """
        List of values.

        Args:
            items: Constraint for every item, or a sequence of alternatives.
            allow_single: Wrap a lone value into a one-item list.
        """
        if isinstance(items, Constraint):
            items = [items]
        return cls("array", list, items=items, allow_single=allow_single)

    @classmethod
    def object(cls, properties: Mapping[str, Any]) -> "Constraint":
        """Nested object validated against its own schema map."""
        return cls("object", dict, properties=properties)

    @classmethod
    def any(cls) -> "Constraint":
        return cls("any", Any)

    @classmethod
    def of(cls, annotation: Any) -> "Constraint":
        """Wrap any pydantic-compatible annotation (e.g. a nested BaseModel)."""
        return cls("raw", annotation)

    # ------------------------------------------------------------------
    # Fluent rules
    # ------------------------------------------------------------------

    def _evolve(self, **changes: Any) -> "Constraint":
        clone = copy.copy(self)
        clone.bounds = dict(self.bounds)
        for name, value in changes.items():
            setattr(clone, name, value)
        return clone

    def required(self) -> "Constraint":
        return self._evolve(is_required=True)

    def optional(self) -> "Constraint":
        """Drop the presence requirement, keep every other rule."""
        return self._evolve(is_required=False)

    def allow_null(self, allow: bool = True) -> "Constraint":
        return self._evolve(nullable=allow)

    def default(self, value: Any) -> "Constraint":
        return self._evolve(default=value)

    def only(self, *values: Any) -> "Constraint":
        """Restrict to the given values. A single list argument is unpacked."""
        if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
            values = tuple(values[0])
        return self._evolve(allowed=tuple(values))

    def disallow_empty(self) -> "Constraint":
        self._expect("disallow_empty", "string")
        return self._evolve(allow_empty=False)

    def min(self, limit: Union[int, float]) -> "Constraint":
        return self._bound("min", limit)

    def max(self, limit: Union[int, float]) -> "Constraint":
        return self._bound("max", limit)

    def regex(self, pattern: Union[str, "re.Pattern[str]"]) -> "Constraint":
        self._expect("regex", "string")
        if isinstance(pattern, re.Pattern):
            pattern = pattern.pattern
        return self._evolve_bound("pattern", pattern)

    def options(self, convert: Optional[bool] = None) -> "Constraint":
        if convert is None:
            return self
        return self._evolve(convert=convert)

    def _bound(self, which: str, limit: Union[int, float]) -> "Constraint":
        if self.kind in ("string", "array"):
            return self._evolve_bound(f"{which}_length", limit)
        if self.kind in ("number", "integer", "big_integer"):
            return self._evolve_bound("ge" if which == "min" else "le", limit)
        raise PreconditionError(f"Rule '{which}' is not supported by {self.kind} constraints")

    def _evolve_bound(self, key: str, value: Any) -> "Constraint":
        clone = self._evolve()
        clone.bounds[key] = value
        return clone

    def _expect(self, rule: str, *kinds: str) -> None:
        if self.kind not in kinds:
            raise PreconditionError(
                f"Rule '{rule}' is not supported by {self.kind} constraints"
            )

    @property
    def has_default(self) -> bool:
        return self.default is not PydanticUndefined

    # ------------------------------------------------------------------
    # Translation to pydantic
    # ------------------------------------------------------------------

    def annotation(
        self,
        convert: Optional[bool] = None,
        extra: str = "ignore",
        name: str = "Nested",
    ) -> Any:
        """
        Pydantic annotation for the value itself (presence not included).

        Args:
            convert: Force coercion on or off for coercible kinds.
            extra: ``extra`` mode for nested object schemas.
            name: Model name used for nested object schemas.
        """
        metadata: List[Any] = []
        base = self.base

        strict = not self.convert
        if convert is not None and self.kind in COERCIBLE_KINDS:
            strict = not convert

        if self.kind == "big_integer":
            if not self.convert:
                metadata.append(BeforeValidator(_int_to_str))
                metadata.append(Field(pattern=BIG_INTEGER_PATTERN))
            lower, upper = self.bounds.get("ge"), self.bounds.get("le")
            if lower is not None or upper is not None:
                metadata.append(AfterValidator(_bounded(lower, upper)))
        elif self.kind == "datetime":
            if self.convert:
                metadata.append(AfterValidator(_datetime_value(self.is_utc)))
                if self.translator is not None:
                    metadata.append(AfterValidator(self.translator))
                    metadata.append(PlainSerializer(_passthrough))
            else:
                metadata.append(Field(strict=True))
                metadata.append(AfterValidator(_datetime_string(self.is_utc)))
        elif self.kind == "array":
            item_types = [
                item.annotation(convert, extra, f"{name}Item") for item in self.items
            ]
            if not item_types:
                base = List[Any]
            elif len(item_types) == 1:
                base = List[item_types[0]]
            else:
                base = List[Annotated[Any, AfterValidator(_first_match(tuple(item_types)))]]
            if self.bounds:
                metadata.append(Field(**self.bounds))
            if self.allow_single:
                metadata.append(BeforeValidator(_wrap_single))
        elif self.kind == "object":
            from .compiler import compile_schema

            base = compile_schema(name, self.properties, extra=extra, convert=convert)
        elif self.kind in COERCIBLE_KINDS:
            metadata.append(Field(strict=strict, **self.bounds))
            if self.kind == "number":
                metadata.append(AfterValidator(_integral))
                metadata.append(PlainSerializer(_passthrough))
            if self.kind == "string" and not self.allow_empty:
                metadata.append(AfterValidator(_reject_empty))

        if self.allowed is not None:
            metadata.append(AfterValidator(_one_of(self.allowed)))

        annotation = Annotated[(base, *metadata)] if metadata else base
        if self.nullable:
            annotation = Optional[annotation]
        return annotation

    def field(self, alias: Optional[str] = None) -> FieldInfo:
        """FieldInfo carrying presence and default for an object key."""
        if self.is_required:
            return Field(alias=alias)
        if self.has_default:
            return Field(default=self.default, alias=alias)
        return Field(default=None, alias=alias)

    def __repr__(self) -> str:
        flags = [self.kind]
        if self.is_required:
            flags.append("required")
        if self.nullable:
            flags.append("nullable")
        if self.allowed is not None:
            flags.append(f"only={list(self.allowed)!r}")
        if self.bounds:
            flags.append(f"bounds={self.bounds!r}")
        return f"Constraint({', '.join(flags)})"


