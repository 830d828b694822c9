"""
Schema Compiler.

Turns class validation metadata into schema maps (property name ->
constraint expression) and schema maps into pydantic models.

- ``build_prop_schema``: one property's constraint (raw schema, or the
  type builder folded through its rules)
- ``build_schema_maps``: ``(schema_map_id, schema_map_model)`` for a class;
  explicit class-level maps win over property declarations, per side
- ``optionalize`` / ``require``: presence-only rewrites of a schema map
- ``compile_schema``: materialize a schema map as a pydantic model

Compilation is deterministic: the same metadata always yields
structurally identical models.
"""

from functools import reduce
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, create_model, model_validator

from .constraints import Constraint
from .metadata import ClassValidationMetadata, PropertyValidationMetadata

SchemaMap = Dict[str, Any]


class CompiledSchema(BaseModel):
    """
    Base of every compiled schema.

    Fields are stored under positional attribute names and exposed under
    their property names through aliases, so any property name is usable
    (``theID``, ``model_config``, ``_id``...).
    """

    model_config = ConfigDict(
        extra="ignore",
        regex_engine="python-re",
        protected_namespaces=(),
    )

    defaulted_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def mark_defaults_as_set(self) -> "CompiledSchema":
        # Defaults count as supplied values so ``exclude_unset`` keeps them.
        missing = self.defaulted_fields - self.model_fields_set
        if missing:
            self.__pydantic_fields_set__.update(missing)
        return self

    def to_output(self) -> Dict[str, Any]:
        """Validated value: supplied keys plus defaults, under property names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class _StripUnknown(CompiledSchema):
    model_config = ConfigDict(extra="ignore")


class _KeepUnknown(CompiledSchema):
    model_config = ConfigDict(extra="allow")


class _RejectUnknown(CompiledSchema):
    model_config = ConfigDict(extra="forbid")


_BASES: Dict[str, Type[CompiledSchema]] = {
    "ignore": _StripUnknown,
    "allow": _KeepUnknown,
    "forbid": _RejectUnknown,
}


def build_prop_schema(prop_meta: PropertyValidationMetadata) -> Any:
    """Compute one property's constraint expression."""
    if prop_meta.raw_schema is not None:
        return prop_meta.raw_schema
    return reduce(lambda prev, rule: rule(prev), prop_meta.rules, prop_meta.type_builder())


def build_schema_maps(class_meta: ClassValidationMetadata) -> Tuple[SchemaMap, SchemaMap]:
    """
    Derive ``(schema_map_id, schema_map_model)`` from class metadata.

    Property declarations are routed to the identifier map when the
    property is an identifier, otherwise to the model map. A non-empty
    explicit map on the class replaces the computed map for its side.
    The metadata itself is left untouched.
    """
    computed_id: SchemaMap = {}
    computed_model: SchemaMap = {}
    for prop_name, prop_meta in class_meta.props.items():
        target = computed_id if prop_name in class_meta.id_props else computed_model
        target[prop_name] = build_prop_schema(prop_meta)

    schema_map_id = dict(class_meta.schema_map_id) or computed_id
    schema_map_model = dict(class_meta.schema_map_model) or computed_model
    return schema_map_id, schema_map_model


def optionalize(schema_map: Mapping[str, Any]) -> SchemaMap:
    """
    Make every entry optional, keeping its other rules.

    Entries that are not ``Constraint`` expressions cannot be rewritten
    and stay as declared.
    """
    return {
        name: expr.optional() if isinstance(expr, Constraint) else expr
        for name, expr in schema_map.items()
    }


def require(schema_map: Mapping[str, Any]) -> SchemaMap:
    """Make every ``Constraint`` entry required."""
    return {
        name: expr.required() if isinstance(expr, Constraint) else expr
        for name, expr in schema_map.items()
    }


def compile_schema(
    name: str,
    schema_map: Mapping[str, Any],
    extra: str = "ignore",
    convert: Optional[bool] = None,
) -> Type[CompiledSchema]:
    """
    Materialize a schema map as a pydantic model.

    Args:
        name: Model name (shows up in JSON schema titles)
        schema_map: Property name -> ``Constraint`` (or raw annotation)
        extra: Unknown key handling: ``ignore`` strips, ``allow`` keeps,
            ``forbid`` rejects
        convert: Force coercion on or off for every coercible field

    Returns:
        CompiledSchema subclass
    """
    definitions: Dict[str, Any] = {}
    defaulted = set()
    for index, (prop_name, expr) in enumerate(schema_map.items()):
        attr = f"field_{index}"
        if isinstance(expr, Constraint):
            annotation = expr.annotation(convert, extra, f"{name}_{prop_name}")
            definitions[attr] = (annotation, expr.field(alias=prop_name))
            if not expr.is_required and expr.has_default:
                defaulted.add(attr)
        else:
            definitions[attr] = (expr, Field(alias=prop_name))

    model = create_model(name, __base__=_BASES[extra], **definitions)
    model.defaulted_fields = frozenset(defaulted)
    return model
