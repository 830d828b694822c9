"""
Model Validator.

Validates untyped input against the schemas derived for a model class:

- ``id``: a bare identifier value (or a composite-key mapping)
- ``whole``: a complete object for creation; identifier fields optional
- ``partial``: a patch; identifier fields required, every other field
  optional but still checked when present

Validators never raise for bad data. Every method returns an
``(error, value)`` pair where exactly one side is None.

Example:
    >>> validator = ModelValidator(
    ...     schema_map_model={"name": Constraint.string().min(3).required()},
    ...     schema_map_id={"id": Constraint.integer().min(1).required()},
    ... )
    >>> error, value = validator.whole({"name": "Gennova", "junk": 1})
    >>> value
    {'name': 'Gennova'}
    >>> error, value = validator.partial({})
    >>> error.errors[0].field
    'id'
"""

import logging
import threading
from typing import Any, Dict, Generic, Mapping, Optional, Tuple, Type, TypeVar, Union

import pydantic

from ..exceptions import PreconditionError
from ..settings import ValidationOptions
from .compiler import CompiledSchema, build_schema_maps, compile_schema, optionalize, require
from .errors import ValidationError
from .metadata import registry

logger = logging.getLogger(__name__)

T = TypeVar("T")

ValidationResult = Tuple[Optional[ValidationError], Optional[Any]]
OptionsLike = Union[ValidationOptions, Dict[str, Any], None]

SCHEMA_KINDS = ("id", "whole", "whole_edit", "partial")


class ModelValidator(Generic[T]):
    """
    Validator bound to an identifier schema map and a model schema map.

    Compiled schemas are built lazily, once per combination of schema kind
    and option variant, and cached for the validator's lifetime.

    Args:
        schema_map_model: Property name -> constraint for model fields
        schema_map_id: Property name -> constraint for identifier fields
        options: Default validation options
        name: Name used for compiled schema titles and log messages

    Raises:
        PreconditionError: If neither schema map has entries.
    """

    def __init__(
        self,
        schema_map_model: Optional[Mapping[str, Any]] = None,
        schema_map_id: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        name: str = "Model",
    ):
        if not schema_map_model and not schema_map_id:
            raise PreconditionError("Schema not specified!")

        self._schema_map_model: Dict[str, Any] = dict(schema_map_model or {})
        self._schema_map_id: Dict[str, Any] = dict(schema_map_id or {})
        self._options = ValidationOptions.default().merge(options)
        self._name = name
        self._compiled: Dict[Tuple[str, str, Optional[bool]], Type[CompiledSchema]] = {}
        self._compile_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        schema_map_model: Optional[Mapping[str, Any]] = None,
        schema_map_id: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        name: str = "Model",
    ) -> "ModelValidator[T]":
        """Build a validator and compile its default schemas eagerly."""
        validator = cls(schema_map_model, schema_map_id, options, name)
        validator.compile()
        return validator

    @property
    def schema_map_model(self) -> Dict[str, Any]:
        return dict(self._schema_map_model)

    @property
    def schema_map_id(self) -> Dict[str, Any]:
        return dict(self._schema_map_id)

    @property
    def options(self) -> ValidationOptions:
        return self._options

    @property
    def is_composite_id(self) -> bool:
        return len(self._schema_map_id) > 1

    def compile(self) -> None:
        """Compile the identifier, whole and partial schemas for the default options."""
        kinds = ("whole", "partial", "id") if self._schema_map_id else ("whole", "partial")
        for kind in kinds:
            self._schema(kind, self._options)

    def id(self, value: Any) -> ValidationResult:
        """
        Validate an identifier value.

        With one identifier property ``value`` is the bare value; with
        several it is a mapping holding all of them. Identifier fields are
        always required here.

        Raises:
            PreconditionError: If the validator has no identifier schema.
        """
        if not self._schema_map_id:
            raise PreconditionError(f"{self._name} has no identifier schema!")

        schema = self._schema("id", self._options)
        if self.is_composite_id:
            return self._run(schema, value, self._options)

        key = next(iter(self._schema_map_id))
        payload = {} if value is None else {key: value}
        error, validated = self._run(schema, payload, self._options)
        return (error, None) if error else (None, validated[key])

    def whole(self, target: Any, options: OptionsLike = None) -> ValidationResult:
        """
        Validate a complete object for creation.

        Identifier fields are optional unless ``is_edit`` is set.
        """
        opts = self._options.merge(options)
        kind = "whole_edit" if opts.is_edit else "whole"
        return self._run(self._schema(kind, opts), target, opts)

    def partial(self, target: Any, options: OptionsLike = None) -> ValidationResult:
        """Validate a patch: identifier fields required, model fields optional."""
        opts = self._options.merge(options)
        return self._run(self._schema("partial", opts), target, opts)

    def json_schema(self, kind: str = "whole") -> Dict[str, Any]:
        """JSON Schema of a compiled schema (``id``, ``whole``, ``whole_edit`` or ``partial``)."""
        if kind not in SCHEMA_KINDS:
            raise PreconditionError(f"Unknown schema kind '{kind}'")
        return self._schema(kind, self._options).model_json_schema()

    def _schema_map(self, kind: str) -> Dict[str, Any]:
        if kind == "id":
            return require(self._schema_map_id)
        if kind == "whole":
            return {**optionalize(self._schema_map_id), **self._schema_map_model}
        if kind == "whole_edit":
            return {**require(self._schema_map_id), **self._schema_map_model}
        return {**require(self._schema_map_id), **optionalize(self._schema_map_model)}

    def _schema(self, kind: str, opts: ValidationOptions) -> Type[CompiledSchema]:
        key = (kind, opts.extra_mode, opts.convert)
        schema = self._compiled.get(key)
        if schema is not None:
            return schema
        with self._compile_lock:
            schema = self._compiled.get(key)
            if schema is None:
                title = f"{self._name}{kind.title().replace('_', '')}"
                schema = compile_schema(
                    title, self._schema_map(kind), extra=opts.extra_mode, convert=opts.convert
                )
                self._compiled[key] = schema
                logger.debug(f"Compiled {kind} schema for {self._name} (variant={key[1:]})")
        return schema

    @staticmethod
    def _run(
        schema: Type[CompiledSchema], target: Any, opts: ValidationOptions
    ) -> ValidationResult:
        try:
            instance = schema.model_validate(target)
        except pydantic.ValidationError as exc:
            error = ValidationError.from_pydantic(exc)
            return (error.first() if opts.abort_early else error), None
        return None, instance.to_output()

    def __repr__(self) -> str:
        return (
            f"ModelValidator({self._name}, id={list(self._schema_map_id)}, "
            f"model={list(self._schema_map_model)})"
        )


def create_validator(
    cls: type,
    options: OptionsLike = None,
    release_metadata: bool = False,
) -> Optional[ModelValidator]:
    """
    Build the validator for a declared model class.

    Args:
        cls: Model class with declared validation metadata
        options: Validation options; defaults to the class's own options
        release_metadata: Drop the class's metadata from the registry
            once the validator is built

    Returns:
        ModelValidator, or None when the class declares nothing to validate.
    """
    class_meta = registry.get_class_metadata(cls)
    schema_map_id, schema_map_model = build_schema_maps(class_meta)
    if not schema_map_id and not schema_map_model:
        logger.debug(f"{cls.__qualname__} declares no validation rules")
        return None

    validator: ModelValidator = ModelValidator(
        schema_map_model,
        schema_map_id,
        options if options is not None else class_meta.options,
        name=cls.__name__,
    )
    if release_metadata:
        registry.delete_class_metadata(cls)
    return validator
