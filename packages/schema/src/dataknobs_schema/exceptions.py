"""Exception hierarchy for the dataknobs_schema package.

Expected validation failures are never raised: they are reported through
:class:`~dataknobs_schema.result.ValidationResult`. Exceptions are reserved for
malformed schemas (raised when the schema is built), for the raising
``parse()`` entry points, and for cancelled asynchronous validations.

Example:
    ```python
    from dataknobs_schema import Number, Object, SchemaValidationError

    schema = Object({"age": Number().min(0)})
    try:
        schema.parse({"age": -1})
    except SchemaValidationError as e:
        print(e.flatten()["field_errors"])
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .issues import Issue


class SchemaError(Exception):
    """Base exception for the schema package.

    Carries an optional context dictionary with structured information
    about the error.

    Args:
        message: Human-readable error message
        context: Optional context dictionary
        details: Alternative to context (takes precedence if both are given)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class SchemaDefinitionError(SchemaError):
    """Raised when a schema is constructed with an invalid shape.

    Examples include a union without members, a discriminated union member
    lacking the discriminator field, or a ``min`` bound above its ``max``.
    """

    pass


class SchemaConfigurationError(SchemaError):
    """Raised when a validation or schema configuration cannot be loaded."""

    pass


class SchemaCycleError(SchemaDefinitionError):
    """Raised when a lazy schema recurses without consuming any input."""

    def __init__(self, message: str, schema: Any = None):
        self.schema = schema
        super().__init__(message, context={"schema": repr(schema)} if schema is not None else None)


class SchemaValidationError(SchemaError):
    """Raised by ``parse()`` when validation fails.

    Attributes:
        issues: The complete list of issues found
    """

    def __init__(self, issues: list[Issue]):
        self.issues = list(issues)
        count = len(self.issues)
        first = self.issues[0].message if self.issues else ""
        super().__init__(
            f"Validation failed with {count} issue(s): {first}",
            context={"issue_count": count},
        )

    def flatten(self) -> dict[str, Any]:
        """Project the issues into form-level and field-level messages."""
        from .projections import flatten

        return flatten(self.issues)

    def treeify(self) -> dict[str, Any]:
        """Project the issues into a tree mirroring the input shape."""
        from .projections import treeify

        return treeify(self.issues)


class ValidationCancelledError(SchemaError):
    """Raised when an asynchronous validation observes its cancel signal."""

    pass


__all__ = [
    "SchemaError",
    "SchemaDefinitionError",
    "SchemaConfigurationError",
    "SchemaCycleError",
    "SchemaValidationError",
    "ValidationCancelledError",
]
