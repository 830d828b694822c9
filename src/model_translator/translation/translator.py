"""
Model Translator.

Validate-then-map pipeline from untyped input to model instances:

    translator = ModelTranslator(Account, create_validator(Account))
    account = translator.whole({"name": "Gennova", "age": 18})
    patch = translator.partial({"account_id": 5, "age": 20})

Each object goes through validation (unless disabled), then the mapper.
A failure at either step is raised, or handed to ``error_callback`` in
which case the object translates to None and a batch keeps going.

``try_whole`` / ``try_partial`` never raise for bad data and return
``TranslationResult`` values instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import pydantic

from ..exceptions import PreconditionError
from ..settings import MappingOptions
from ..validation.validator import ModelValidator
from .mapper import ModelMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

OptionsLike = Union[MappingOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class TranslationResult(Generic[T]):
    """
    Outcome of translating one object.

    Attributes:
        ok: Whether translation succeeded
        value: The model instance (None on failure, or for None input)
        error: The failure (ValidationError or mapping error), if any
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Optional[T]) -> "TranslationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> "TranslationResult[T]":
        return cls(ok=False, error=error)

    def unwrap(self) -> Optional[T]:
        """Return the value, or raise the error."""
        if not self.ok:
            raise self.error
        return self.value

    def unwrap_or(self, default: Any) -> Any:
        return self.value if self.ok else default


def _is_object(source: Any) -> bool:
    return isinstance(source, (Mapping, list, tuple))


class ModelTranslator(Generic[T]):
    """
    Translates untyped objects to ``model_class`` instances.

    Args:
        model_class: Target model class
        validator: Validator run before mapping. Enables validation.
        mapper: Shape copier; defaults to ``ModelMapper(model_class)``
        enable_validation: Validation switch. Defaults to whether a
            validator is given.

    Raises:
        PreconditionError: If validation is enabled without a validator.
    """

    def __init__(
        self,
        model_class: Type[T],
        validator: Optional[ModelValidator] = None,
        mapper: Optional[ModelMapper] = None,
        enable_validation: Optional[bool] = None,
    ):
        self.model_class = model_class
        self._validator = validator
        self.mapper: ModelMapper = mapper if mapper is not None else ModelMapper(model_class)
        self.enable_validation = enable_validation

    @property
    def validator(self) -> Optional[ModelValidator]:
        return self._validator

    @property
    def enable_validation(self) -> bool:
        return self._enable_validation

    @enable_validation.setter
    def enable_validation(self, enabled: Optional[bool]) -> None:
        if enabled is None:
            enabled = self._validator is not None
        self._check_validation_switch(enabled)
        self._enable_validation = enabled

    def _check_validation_switch(self, enabled: bool) -> None:
        name = self.model_class.__qualname__
        if enabled and self._validator is None:
            raise PreconditionError(f"Cannot enable validation for {name}: no validator")
        if not enabled and self._validator is not None:
            logger.warning(f"Validation is disabled for {name} although it has a validator")

    def whole(self, source: Any, options: OptionsLike = None, **overrides: Any) -> Any:
        """
        Validate (all fields) then map ``source``.

        Args:
            source: Mapping, or list/tuple of mappings
            options: MappingOptions or dict
            **overrides: Individual option overrides (``is_edit=True``...)

        Returns:
            Model instance, list of instances (None for reported failures),
            or None for None/non-object input.

        Raises:
            ValidationError: On invalid input, without ``error_callback``.
        """
        return self._translate_source("whole", source, options, overrides)

    def partial(self, source: Any, options: OptionsLike = None, **overrides: Any) -> Any:
        """Validate (only supplied fields, identifiers required) then map ``source``."""
        return self._translate_source("partial", source, options, overrides)

    def whole_many(
        self, sources: Optional[List[Any]], options: OptionsLike = None, **overrides: Any
    ) -> Optional[List[Optional[T]]]:
        return self._translate_many("whole", sources, options, overrides)

    def partial_many(
        self, sources: Optional[List[Any]], options: OptionsLike = None, **overrides: Any
    ) -> Optional[List[Optional[T]]]:
        return self._translate_many("partial", sources, options, overrides)

    def try_whole(
        self, source: Any, options: OptionsLike = None, **overrides: Any
    ) -> Union[TranslationResult[T], List[TranslationResult[T]]]:
        """
        Like ``whole`` but failures are returned, never raised.

        ``error_callback`` is not used. A list input gives one result per
        element.
        """
        return self._try_source("whole", source, options, overrides)

    def try_partial(
        self, source: Any, options: OptionsLike = None, **overrides: Any
    ) -> Union[TranslationResult[T], List[TranslationResult[T]]]:
        return self._try_source("partial", source, options, overrides)

    def _resolve_options(self, options: OptionsLike, overrides: Mapping[str, Any]) -> MappingOptions:
        try:
            resolved = (
                MappingOptions(enable_validation=self._enable_validation, is_edit=False)
                .merge(options)
                .merge(dict(overrides))
            )
        except pydantic.ValidationError as e:
            raise PreconditionError(f"Invalid mapping options: {e}") from e
        if resolved.enable_validation and self._validator is None:
            raise PreconditionError(
                f"Cannot enable validation for {self.model_class.__qualname__}: no validator"
            )
        return resolved

    def _translate_source(
        self, kind: str, source: Any, options: OptionsLike, overrides: Mapping[str, Any]
    ) -> Any:
        if not _is_object(source):
            return None
        opts = self._resolve_options(options, overrides)
        if isinstance(source, (list, tuple)):
            return [self._translate_one(kind, item, opts) for item in source]
        return self._translate_one(kind, source, opts)

    def _translate_many(
        self, kind: str, sources: Any, options: OptionsLike, overrides: Mapping[str, Any]
    ) -> Optional[List[Optional[T]]]:
        if sources is None:
            return None
        if not isinstance(sources, (list, tuple)):
            raise PreconditionError(f"Expected a list of objects, got {type(sources).__name__}")
        return self._translate_source(kind, list(sources), options, overrides)

    def _try_source(
        self, kind: str, source: Any, options: OptionsLike, overrides: Mapping[str, Any]
    ) -> Union[TranslationResult[T], List[TranslationResult[T]]]:
        if not _is_object(source):
            return TranslationResult.success(None)
        opts = self._resolve_options(options, overrides)
        if isinstance(source, (list, tuple)):
            return [self._result(kind, item, opts) for item in source]
        return self._result(kind, source, opts)

    def _result(self, kind: str, source: Any, opts: MappingOptions) -> TranslationResult[T]:
        error, model = self._attempt(kind, source, opts)
        if error is not None:
            return TranslationResult.failure(error)
        return TranslationResult.success(model)

    def _translate_one(self, kind: str, source: Any, opts: MappingOptions) -> Optional[T]:
        error, model = self._attempt(kind, source, opts)
        if error is None:
            return model
        if opts.error_callback is None:
            raise error
        opts.error_callback(error)
        return None

    def _attempt(
        self, kind: str, source: Any, opts: MappingOptions
    ) -> Tuple[Optional[Exception], Optional[T]]:
        if opts.enable_validation:
            validate = self._validator.whole if kind == "whole" else self._validator.partial
            error, source = validate(source, {"is_edit": opts.is_edit})
            if error is not None:
                return error, None
        else:
            logger.debug(f"Skipping {kind} validation for {self.model_class.__qualname__}")
        return self.mapper.map(source)

    def __repr__(self) -> str:
        return (
            f"ModelTranslator({self.model_class.__qualname__}, "
            f"enable_validation={self._enable_validation})"
        )
