"""
Validation Error Types.

Provides structured error handling for validation failures:
- ValidationErrorDetail: Single violation with its path inside the input
- ValidationError: Exception containing all violations, in schema order

Violations reported by the constraint engine (pydantic) are converted with
``ValidationError.from_pydantic``.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import pydantic

PathItem = Union[str, int]


def format_path(path: Sequence[PathItem]) -> str:
    """
    Render a path tuple as a dotted field name.

    Examples:
        >>> format_path(("options", "temperature"))
        'options.temperature'
        >>> format_path(("tags", 2, "name"))
        'tags[2].name'
    """
    rendered = ""
    for item in path:
        if isinstance(item, int):
            rendered += f"[{item}]"
        elif rendered:
            rendered += f".{item}"
        else:
            rendered = str(item)
    return rendered


class ValidationErrorDetail:
    """
    Details about a single validation error.

    Attributes:
        path: Tuple of keys and list indexes leading to the value
            (e.g. ``("tags", 0)``). Empty for a bare value.
        field: Dotted rendering of ``path`` (e.g. ``"tags[0]"``)
        error: Error type reported by the engine (missing, string_too_short, ...)
        message: Human-readable error message
        value: The actual value that failed validation (optional)
        constraint: Constraint context of the violation (optional)
    """

    def __init__(
        self,
        path: Sequence[PathItem],
        error: str,
        message: str,
        value: Optional[Any] = None,
        constraint: Optional[Any] = None,
    ):
        self.path: Tuple[PathItem, ...] = tuple(path)
        self.field = format_path(self.path)
        self.error = error
        self.message = message
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        result = {
            "path": list(self.path),
            "field": self.field,
            "error": self.error,
            "message": self.message,
        }
        if self.value is not None:
            result["value"] = self.value
        if self.constraint is not None:
            result["constraint"] = self.constraint
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationErrorDetail):
            return NotImplemented
        return (self.path, self.error, self.message) == (
            other.path,
            other.error,
            other.message,
        )

    def __hash__(self) -> int:
        return hash((self.path, self.error, self.message))

    def __repr__(self) -> str:
        return f"ValidationErrorDetail(field={self.field!r}, error={self.error!r}, message={self.message!r})"


class ValidationError(Exception):
    """
    Exception describing invalid input.

    Validators return it, translators raise it or hand it to an error
    callback. Errors are aggregated: every violated constraint across the
    object is listed, not just the first.

    Attributes:
        errors: List of ValidationErrorDetail instances
    """

    def __init__(self, errors: Iterable[ValidationErrorDetail]):
        self.errors: List[ValidationErrorDetail] = list(errors)
        super().__init__(self._summary())

    @property
    def details(self) -> List[ValidationErrorDetail]:
        """Alias of ``errors``."""
        return self.errors

    @classmethod
    def from_pydantic(
        cls,
        exc: pydantic.ValidationError,
        prefix: Sequence[PathItem] = (),
    ) -> "ValidationError":
        """
        Build from a pydantic ValidationError, keeping the engine's order.

        Args:
            exc: Error raised by the constraint engine.
            prefix: Path prepended to every reported location.
        """
        details = []
        for item in exc.errors(include_url=False):
            error_type = item["type"]
            details.append(
                ValidationErrorDetail(
                    path=tuple(prefix) + tuple(item["loc"]),
                    error=error_type,
                    message=item["msg"],
                    value=None if error_type == "missing" else item.get("input"),
                    constraint=item.get("ctx"),
                )
            )
        return cls(details)

    def first(self) -> "ValidationError":
        """Return a copy holding only the first violation."""
        return ValidationError(self.errors[:1])

    def to_dict(self) -> dict:
        """
        Convert to HTTP 422 response format.

        Returns:
            Dict with:
                - success: False
                - errors: List of error details
        """
        return {
            "success": False,
            "errors": [e.to_dict() for e in self.errors],
        }

    def _summary(self) -> str:
        lines = [f"Validation failed: {len(self.errors)} error(s)"]
        lines.extend(f"  {e.field or '<value>'}: {e.message}" for e in self.errors)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ValidationError({len(self.errors)} errors)"
