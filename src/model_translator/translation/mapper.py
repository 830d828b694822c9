"""
Model Mapper.

Copies the keys of an already validated mapping onto a fresh instance of
a model class. Per-member transforms can rewrite a value on the way:

    mapper = ModelMapper(Account).for_member("name", lambda value, source: value.title())
    error, account = mapper.map({"name": "gennova"})

The model class must be constructible without arguments. Keys are copied
as they are; nested mappings stay mappings.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Tuple, Type, TypeVar

from ..exceptions import PreconditionError, assert_arg_defined

logger = logging.getLogger(__name__)

T = TypeVar("T")

MemberTransform = Callable[[Any, Mapping[str, Any]], Any]
MappingResult = Tuple[Optional[Exception], Optional[T]]


class ModelMapper(Generic[T]):
    """
    Shape copier from mappings to ``model_class`` instances.

    Args:
        model_class: Target class, constructible without arguments
        transforms: Property name -> ``fn(value, source)`` returning the
            value to assign

    Raises:
        PreconditionError: If ``model_class`` is not a class or needs
            constructor arguments.
    """

    def __init__(
        self,
        model_class: Type[T],
        transforms: Optional[Mapping[str, MemberTransform]] = None,
    ):
        assert_arg_defined("model_class", model_class)
        if not inspect.isclass(model_class):
            raise PreconditionError(f"{model_class!r} is not a class")
        self._check_constructible(model_class)

        self.model_class = model_class
        self._transforms: Dict[str, MemberTransform] = {}
        for name, fn in (transforms or {}).items():
            self.for_member(name, fn)

    @staticmethod
    def _check_constructible(model_class: type) -> None:
        try:
            signature = inspect.signature(model_class)
        except (TypeError, ValueError):
            return
        try:
            signature.bind()
        except TypeError as e:
            raise PreconditionError(
                f"{model_class.__qualname__} must be constructible without arguments: {e}"
            ) from e

    def for_member(self, name: str, fn: MemberTransform) -> "ModelMapper[T]":
        """
        Register a transform for property ``name``.

        The transform runs only when ``name`` is present in the source.
        Returns the mapper, so registrations can be chained.
        """
        if not callable(fn):
            raise PreconditionError(f"Transform for '{name}' must be callable")
        self._transforms[name] = fn
        return self

    def map(self, source: Any) -> MappingResult:
        """
        Copy ``source`` onto a new model instance.

        Returns:
            ``(None, instance)`` on success, ``(error, None)`` when copying
            failed. ``PreconditionError`` always propagates.
        """
        try:
            return None, self._copy(source)
        except PreconditionError:
            raise
        except Exception as e:
            logger.debug(f"Mapping to {self.model_class.__qualname__} failed: {e!r}")
            return e, None

    def _copy(self, source: Any) -> T:
        if not isinstance(source, Mapping):
            raise TypeError(
                f"Cannot map {type(source).__name__} to {self.model_class.__qualname__}"
            )
        instance = self.model_class()
        for name, value in source.items():
            transform = self._transforms.get(name)
            if transform is not None:
                value = transform(value, source)
            setattr(instance, name, value)
        return instance

    def __repr__(self) -> str:
        return f"ModelMapper({self.model_class.__qualname__}, transforms={list(self._transforms)})"
