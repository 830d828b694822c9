"""
Model Translation Module.

Turns untyped input into model instances:
- ModelMapper: copies a validated mapping onto a new model instance
- ModelTranslator: validate-then-map pipeline (raise, callback or result)
- Translatable / translatable(): per-class memoized validator and translator

Example:
    >>> from model_translator.translation import ModelTranslator
    >>> translator = ModelTranslator(Account, create_validator(Account))
    >>> account = translator.whole({"name": "Gennova"})
    >>> result = translator.try_whole({"name": 1})
    >>> result.ok
    False
"""

from .mapper import ModelMapper
from .translator import ModelTranslator, TranslationResult
from .translatable import Translatable, translatable

__all__ = [
    "ModelMapper",
    "ModelTranslator",
    "TranslationResult",
    "Translatable",
    "translatable",
]
