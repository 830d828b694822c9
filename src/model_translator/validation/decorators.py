"""
Validation Declarations for Model Classes.

Property rules are attached to class attributes with ``typing.Annotated``
and collected when the class is declared (by ``validate_class``,
``translatable`` or by inheriting ``Translatable``):

    @validate_class()
    class Account:
        account_id: Annotated[int, identifier(), required(), integer(min=1)] = None
        name: Annotated[str, required(), string(min_length=3, max_length=10)] = None
        age: Annotated[int, number(min=15, max=99)] = None
        status: Annotated[str, only("active", "locked"), default_as("active")] = None

Rules can also be declared imperatively with ``declare_property``.

Class-level schema maps passed to ``validate_class`` replace the property
rules of their side (identifier or model) entirely.
"""

import inspect
import logging
import re
import typing
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ..exceptions import PreconditionError, assert_is_truthy
from ..settings import ValidationOptions
from .constraints import Constraint
from .metadata import ClassValidationMetadata, PropertyValidationMetadata, registry

logger = logging.getLogger(__name__)

Applier = Callable[[ClassValidationMetadata, PropertyValidationMetadata, str], None]


class PropertyRule:
    """
    One declaration about a property (its type, a bound, a default...).

    Attributes:
        name: Rule name, for diagnostics
    """

    def __init__(self, name: str, applier: Applier):
        self.name = name
        self._applier = applier

    def apply(
        self,
        class_meta: ClassValidationMetadata,
        prop_meta: PropertyValidationMetadata,
        prop_name: str,
    ) -> None:
        self._applier(class_meta, prop_meta, prop_name)

    def __repr__(self) -> str:
        return f"PropertyRule({self.name})"


def _type_rule(
    name: str,
    type_builder: Callable[[], Constraint],
    rules: Sequence[Callable[[Constraint], Constraint]] = (),
) -> PropertyRule:
    def applier(class_meta, prop_meta, prop_name):
        prop_meta.type_builder = type_builder
        prop_meta.rules.extend(rules)

    return PropertyRule(name, applier)


def _bounds(
    lower: Optional[Union[int, float]], upper: Optional[Union[int, float]]
) -> list:
    rules = []
    if lower is not None:
        rules.append(lambda prev: prev.min(lower))
    if upper is not None:
        rules.append(lambda prev: prev.max(upper))
    return rules


def required(allow_null: bool = False) -> PropertyRule:
    """
    Property must be present.

    Args:
        allow_null: Whether an explicit None is accepted. Default is False.
    """

    def applier(class_meta, prop_meta, prop_name):
        prop_meta.rules.append(lambda prev: prev.required())
        if allow_null:
            prop_meta.rules.append(lambda prev: prev.allow_null())

    return PropertyRule("required", applier)


def string(
    allow_empty: bool = True,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    pattern: Optional[Union[str, "re.Pattern[str]"]] = None,
) -> PropertyRule:
    """Property must be a string."""

    def type_builder() -> Constraint:
        schema = Constraint.string()
        return schema if allow_empty else schema.disallow_empty()

    rules = []
    if min_length is not None:
        rules.append(lambda prev: prev.min(min_length))
    if max_length is not None:
        rules.append(lambda prev: prev.max(max_length))
    if pattern is not None:
        rules.append(lambda prev: prev.regex(pattern))
    return _type_rule("string", type_builder, rules)


def number(
    min: Optional[Union[int, float]] = None,
    max: Optional[Union[int, float]] = None,
    convert: bool = False,
) -> PropertyRule:
    """
    Property must be a number.

    Args:
        min: Minimum allowed number.
        max: Maximum allowed number.
        convert: Whether numeric strings are converted. Default is False.
    """
    return _type_rule("number", lambda: Constraint.number(convert), _bounds(min, max))


def integer(
    min: Optional[int] = None,
    max: Optional[int] = None,
    convert: bool = False,
) -> PropertyRule:
    """Property must be an integer."""
    return _type_rule("integer", lambda: Constraint.integer(convert), _bounds(min, max))


def boolean(convert: bool = False) -> PropertyRule:
    """Property must be a boolean. ``convert`` accepts "true", "no", 1..."""
    return _type_rule("boolean", lambda: Constraint.boolean(convert))


def big_integer(convert: bool = False) -> PropertyRule:
    """
    Property must be a big integer.

    Args:
        convert: Convert to ``int``. Default is False, which keeps the
            value as a decimal string.
    """
    return _type_rule("big_integer", lambda: Constraint.big_integer(convert))


def datetime(
    is_utc: bool = False,
    translator: Optional[Callable[[Any], Any]] = None,
    convert: bool = False,
) -> PropertyRule:
    """
    Property must be an ISO 8601 date-time.

    Args:
        is_utc: Whether the input must carry a UTC offset. Default: False.
        translator: Function converting the parsed ``datetime`` to the
            desired type. Default keeps the ``datetime``.
        convert: Whether to return the parsed value or keep the string.
            Default is False, which keeps the string.
    """
    return _type_rule(
        "datetime",
        lambda: Constraint.datetime(is_utc=is_utc, translator=translator, convert=convert),
    )


def array(
    items: Union[Constraint, Sequence[Constraint], None] = None,
    allow_single: bool = True,
) -> PropertyRule:
    """
    Property must be a list.

    Args:
        items: Constraint for the items, or a sequence of alternatives.
        allow_single: Accept a lone value as a one-item list. Default is True.
    """
    return _type_rule(
        "array", lambda: Constraint.array(items, allow_single=allow_single)
    )


def only(*values: Any) -> PropertyRule:
    """Property must be one of the given values."""

    def applier(class_meta, prop_meta, prop_name):
        prop_meta.rules.append(lambda prev: prev.only(*values))

    return PropertyRule("only", applier)


def default_as(value: Any) -> PropertyRule:
    """Value used when the property is missing."""

    def applier(class_meta, prop_meta, prop_name):
        prop_meta.rules.append(lambda prev: prev.default(value))

    return PropertyRule("default_as", applier)


def identifier() -> PropertyRule:
    """Property is (part of) the model's primary key."""

    def applier(class_meta, prop_meta, prop_name):
        class_meta.add_id_prop(prop_name)

    return PropertyRule("identifier", applier)


def raw_constraint(schema: Any) -> PropertyRule:
    """
    Full custom constraint for the property; other rules are ignored.

        class Order:
            quantity: Annotated[int, raw_constraint(Constraint.integer().min(1).max(99))] = None
    """
    if schema is None:
        raise PreconditionError("raw_constraint needs a constraint expression")

    def applier(class_meta, prop_meta, prop_name):
        prop_meta.raw_schema = schema

    return PropertyRule("raw_constraint", applier)


def declare_property(cls: type, prop_name: str, *rules: PropertyRule) -> None:
    """
    Apply property rules to ``prop_name`` of ``cls``.

    Raises:
        PreconditionError: If ``prop_name`` is empty or a rule is not a PropertyRule.
    """
    assert_is_truthy(prop_name, "Property rules are for named properties inside a class")
    for rule in rules:
        if not isinstance(rule, PropertyRule):
            raise PreconditionError(f"{rule!r} is not a property rule")

    class_meta = registry.get_class_metadata(cls)
    prop_meta = registry.extract_property_metadata(class_meta, prop_name, cls)
    for rule in rules:
        rule.apply(class_meta, prop_meta, prop_name)
    registry.set_property_metadata(cls, prop_name, prop_meta, class_meta)


def _own_annotations(cls: type) -> Dict[str, Any]:
    try:
        return inspect.get_annotations(cls, eval_str=True)
    except NameError as e:
        logger.warning(
            f"Cannot resolve annotations of {cls.__qualname__} ({e}); "
            "string annotations carry no property rules"
        )
        return inspect.get_annotations(cls)


def declare_annotations(cls: type) -> type:
    """
    Collect ``Annotated`` property rules declared on ``cls`` itself.

    Runs once per class; later calls are no-ops.
    """
    if not registry.mark_declared(cls):
        return cls

    for prop_name, hint in _own_annotations(cls).items():
        if typing.get_origin(hint) is not typing.Annotated:
            continue
        rules = [m for m in typing.get_args(hint)[1:] if isinstance(m, PropertyRule)]
        if rules:
            declare_property(cls, prop_name, *rules)
    return cls


def validate_class(
    schema_map_model: Optional[Mapping[str, Any]] = None,
    schema_map_id: Optional[Mapping[str, Any]] = None,
    options: Union[ValidationOptions, Dict[str, Any], None] = None,
    declaration: Optional[Any] = None,
) -> Callable[[type], type]:
    """
    Class decorator declaring validation for a model class.

    Args:
        schema_map_model: Constraints of model properties. Overrides all
            property rules of non-identifier properties.
        schema_map_id: Constraints of identifier properties. Overrides
            the ``identifier()`` property rules.
        options: Default validation options for the class.
        declaration: Declarative schema (e.g. ``ClassSchema.from_yaml(...)``)
            applied before the explicit maps.
    """

    def decorator(cls: type) -> type:
        declare_annotations(cls)
        if declaration is not None:
            declaration.apply(cls)

        class_meta = registry.get_class_metadata(cls)
        if schema_map_model:
            class_meta.schema_map_model = dict(schema_map_model)
        if schema_map_id:
            class_meta.schema_map_id = dict(schema_map_id)
        if options is not None:
            class_meta.options = ValidationOptions.default().merge(options)
        registry.set_class_metadata(cls, class_meta)
        return cls

    return decorator
