"""
Translatable Models.

Gives a model class its own memoized validator and translator:

    class Account(Translatable):
        account_id: Annotated[int, identifier(), integer(min=1)] = None
        name: Annotated[str, required(), string(min_length=3)] = None

    account = Account.from_dict({"name": "Gennova"})

Classes that cannot inherit ``Translatable`` get the same class methods
with the ``@translatable()`` decorator.

Validator and translator are built once per exact class; a subclass
builds its own, from its own (inherited and extended) declarations.
"""

import logging
import threading
import weakref
from typing import Any, List, Optional, TypeVar

from ..validation.decorators import declare_annotations
from ..validation.validator import ModelValidator, create_validator
from .translator import ModelTranslator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NO_VALIDATOR = object()

_validators: "weakref.WeakKeyDictionary[type, Any]" = weakref.WeakKeyDictionary()
_translators: "weakref.WeakKeyDictionary[type, ModelTranslator]" = weakref.WeakKeyDictionary()
_lock = threading.RLock()


class Translatable:
    """
    Base class for translatable models.

    Subclasses have their ``Annotated`` property rules collected when the
    class is created.
    """

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        declare_annotations(cls)

    @classmethod
    def get_validator(cls) -> Optional[ModelValidator]:
        """Validator of this class, or None if it declares no validation."""
        with _lock:
            validator = _validators.get(cls)
            if validator is None:
                validator = cls.create_validator()
                _validators[cls] = _NO_VALIDATOR if validator is None else validator
        return None if validator is _NO_VALIDATOR else validator

    @classmethod
    def create_validator(cls) -> Optional[ModelValidator]:
        return create_validator(cls)

    @classmethod
    def get_translator(cls) -> ModelTranslator:
        with _lock:
            translator = _translators.get(cls)
            if translator is None:
                translator = cls.create_translator()
                _translators[cls] = translator
                logger.debug(f"Created translator for {cls.__qualname__}")
        return translator

    @classmethod
    def create_translator(cls) -> ModelTranslator:
        return ModelTranslator(cls, cls.get_validator())

    @classmethod
    def from_dict(cls, source: Any) -> Any:
        """Translate ``source`` (whole) into an instance of this class."""
        return cls.get_translator().whole(source)

    @classmethod
    def from_many(cls, sources: Optional[List[Any]]) -> Optional[List[Any]]:
        return cls.get_translator().whole_many(sources)


TRANSLATABLE_METHODS = (
    "get_validator",
    "create_validator",
    "get_translator",
    "create_translator",
    "from_dict",
    "from_many",
)


def _declare_on_subclass(decorated: type) -> classmethod:
    def __init_subclass__(cls, **kwargs):
        super(decorated, cls).__init_subclass__(**kwargs)
        declare_annotations(cls)

    return classmethod(__init_subclass__)


def translatable():
    """
    Class decorator equipping a class with the ``Translatable`` class methods.

    Methods the class already has are kept.
    """

    def decorator(cls: type) -> type:
        declare_annotations(cls)
        for name in TRANSLATABLE_METHODS:
            if not hasattr(cls, name):
                setattr(cls, name, classmethod(Translatable.__dict__[name].__func__))
        if "__init_subclass__" not in cls.__dict__:
            cls.__init_subclass__ = _declare_on_subclass(cls)
        return cls

    return decorator
