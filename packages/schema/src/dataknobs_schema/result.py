"""Validation result types with consistent, predictable behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import SchemaValidationError
from .issues import Issue, IssueCode


@dataclass(frozen=True)
class ValidationResult:
    """Unified result object for all validation operations.

    Either a success carrying the validated (possibly coerced or
    transformed) value, or a failure carrying a non-empty list of issues.
    Results are created fresh by every validation call and never mutated.
    """

    valid: bool
    value: Any  # The validated value on success, the raw input on failure
    issues: list[Issue] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.valid

    @property
    def errors(self) -> list[str]:
        """Messages of all issues, in order."""
        return [issue.message for issue in self.issues]

    @property
    def async_issues(self) -> list[Issue]:
        """Issues left by async steps reached during a synchronous call."""
        return [issue for issue in self.issues if issue.code == IssueCode.ASYNC_REFINEMENT]

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Combine results for composite validation.

        Args:
            other: Another ValidationResult to merge with this one

        Returns:
            New ValidationResult with combined state
        """
        return ValidationResult(
            valid=self.valid and other.valid,
            value=other.value if other.valid else self.value,
            issues=self.issues + other.issues,
        )

    def unwrap(self) -> Any:
        """Return the value, raising if the result is a failure.

        Raises:
            SchemaValidationError: If the result is a failure
        """
        self.raise_for_issues()
        return self.value

    def raise_for_issues(self) -> None:
        """Raise SchemaValidationError if the result is a failure."""
        if not self.valid:
            raise SchemaValidationError(self.issues)

    def flatten(self) -> dict[str, Any]:
        """Flatten issues into form-level and field-level messages."""
        from .projections import flatten

        return flatten(self.issues)

    def treeify(self) -> dict[str, Any]:
        """Project issues into a tree mirroring the input shape."""
        from .projections import treeify

        return treeify(self.issues)

    def format(self) -> dict[str, Any]:
        """Project issues into nested ``_errors`` mappings."""
        from .projections import format as format_issues

        return format_issues(self.issues)

    @classmethod
    def success(cls, value: Any) -> ValidationResult:
        """Create a successful validation result.

        Args:
            value: The validated value

        Returns:
            Successful ValidationResult
        """
        return cls(valid=True, value=value, issues=[])

    @classmethod
    def failure(cls, value: Any, issues: list[Issue]) -> ValidationResult:
        """Create a failed validation result.

        Args:
            value: The value that failed validation
            issues: Non-empty list of issues

        Returns:
            Failed ValidationResult
        """
        if not issues:
            raise ValueError("A failed ValidationResult requires at least one issue")
        return cls(valid=False, value=value, issues=list(issues))
