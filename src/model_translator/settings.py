"""
Validation and mapping settings models.

Pydantic models for the options accepted by validators and translators.
Class-level defaults are merged with per-call overrides: a value set on
the override wins, an unset (None) value falls back to the default.

Example:
    >>> defaults = ValidationOptions(allow_unknown=False)
    >>> defaults.merge({"abort_early": True})
    ValidationOptions(abort_early=True, allow_unknown=False, ...)
"""

from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ValidationOptions(BaseModel):
    """
    Options controlling a single validation pass.

    Attributes:
        abort_early: Report only the first violation instead of all of them.
        allow_unknown: Accept keys that are not part of the schema.
        strip_unknown: Remove unknown keys from the validated output
            (only meaningful when ``allow_unknown`` is true).
        convert: Force type coercion on (True) or off (False) for every
            field. None leaves the decision to each field's declaration.
        is_edit: Validate identifier fields as required in whole
            validation (used when a whole object replaces an existing one).

    Example YAML:
        ```yaml
        options:
          abort_early: false
          allow_unknown: true
          strip_unknown: true
        ```
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    abort_early: bool = Field(False, description="Stop at the first violation")
    allow_unknown: bool = Field(True, description="Accept keys missing from schema")
    strip_unknown: bool = Field(True, description="Drop unknown keys from output")
    convert: Optional[bool] = Field(
        None, description="Force type coercion for every field"
    )
    is_edit: bool = Field(False, description="Require identifier in whole mode")

    @property
    def extra_mode(self) -> str:
        """Pydantic ``extra`` setting equivalent to these options."""
        if not self.allow_unknown:
            return "forbid"
        return "ignore" if self.strip_unknown else "allow"

    def merge(
        self, overrides: Optional[Union["ValidationOptions", Dict[str, Any]]]
    ) -> "ValidationOptions":
        """
        Merge per-call overrides over these options.

        Args:
            overrides: Options instance or plain dict. For an instance, only
                the fields explicitly set on it take effect. None values
                are ignored.

        Returns:
            New ValidationOptions with overrides applied.
        """
        if overrides is None:
            return self
        if isinstance(overrides, ValidationOptions):
            overrides = overrides.model_dump(exclude_unset=True)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if not overrides:
            return self
        return self.model_validate({**self.model_dump(), **overrides})

    @classmethod
    def default(cls) -> "ValidationOptions":
        """Collect all errors, allow and strip unknown keys, per-field conversion."""
        return cls()


class MappingOptions(BaseModel):
    """
    Per-call options for the translator pipeline.

    Attributes:
        enable_validation: Run validation before mapping. None means the
            translator's own setting.
        is_edit: Passed to the validator; see ``ValidationOptions.is_edit``.
        error_callback: If given, failures are delivered here and the
            element translates to None. Otherwise failures are raised.

    Example:
        >>> errors = []
        >>> translator.whole(payload, MappingOptions(error_callback=errors.append))
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    enable_validation: Optional[bool] = Field(
        None, description="Validate before mapping"
    )
    is_edit: Optional[bool] = Field(None, description="Require identifier fields")
    error_callback: Optional[Callable[[Exception], Any]] = Field(
        None, description="Receives failures instead of raising"
    )

    def merge(
        self, overrides: Optional[Union["MappingOptions", Dict[str, Any]]]
    ) -> "MappingOptions":
        """Merge per-call overrides; values set on the override win."""
        if overrides is None:
            return self
        if isinstance(overrides, MappingOptions):
            overrides = {
                name: getattr(overrides, name) for name in overrides.model_fields_set
            }
        merged = {
            name: getattr(self, name) for name in type(self).model_fields
        }
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return MappingOptions(**merged)
