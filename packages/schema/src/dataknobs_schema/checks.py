"""Check implementations applied to leaf and collection values.

A check inspects an already type-correct value and reports at most one
issue. Checks run in declaration order and every check runs, so several
simultaneous violations on one value are all reported. Normalizing checks
(``trim``, ``to_lower``, ``to_upper``) rewrite the value seen by the checks
that follow them.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from re import Pattern as RegexPattern
from typing import TYPE_CHECKING, Any as AnyType
from urllib.parse import urlparse

from .exceptions import SchemaDefinitionError
from .issues import Issue, IssueCode, Path

if TYPE_CHECKING:
    from collections.abc import Callable

    from .context import Message, ParseContext
    from .schema import Schema


class Check(ABC):
    """Base class for all checks."""

    def __init__(self, message: Message = None):
        """Initialize the check.

        Args:
            message: Custom message (string or callable receiving the issue)
        """
        self.message = message

    @abstractmethod
    def apply(
        self, value: AnyType, schema: Schema, ctx: ParseContext, path: Path
    ) -> tuple[AnyType, Issue | None]:
        """Validate a value against this check.

        Args:
            value: Value to check (already of the schema's kind)
            schema: Schema owning the check, used for message resolution
            ctx: Parse context for the current call
            path: Location of the value

        Returns:
            Tuple of (value for subsequent checks, issue or None)
        """

    def constraint_attributes(self, kind: str) -> dict[str, AnyType]:
        """Static attributes this check contributes to constraint introspection."""
        return {}


class Length(Check):
    """String, array or set length must be within bounds."""

    def __init__(
        self,
        min: int | None = None,
        max: int | None = None,
        message: Message = None,
    ):
        """Initialize length check.

        Args:
            min: Minimum length (inclusive)
            max: Maximum length (inclusive)
            message: Custom message
        """
        if min is not None and min < 0:
            raise SchemaDefinitionError(f"min length cannot be negative: {min}")
        if max is not None and max < 0:
            raise SchemaDefinitionError(f"max length cannot be negative: {max}")
        if min is not None and max is not None and min > max:
            raise SchemaDefinitionError(f"min length ({min}) cannot be greater than max ({max})")
        super().__init__(message)
        self.min = min
        self.max = max
        self.exact = min is not None and min == max

    def apply(self, value, schema, ctx, path):
        length = len(value)
        if self.min is not None and length < self.min:
            return value, ctx.issue(
                schema, IssueCode.TOO_SMALL, path, value, self.message,
                type=schema.kind, minimum=self.min, inclusive=True, exact=self.exact,
            )
        if self.max is not None and length > self.max:
            return value, ctx.issue(
                schema, IssueCode.TOO_BIG, path, value, self.message,
                type=schema.kind, maximum=self.max, inclusive=True, exact=self.exact,
            )
        return value, None

    def constraint_attributes(self, kind):
        attributes = {}
        if self.min is not None:
            attributes["min_length"] = self.min
        if self.max is not None:
            attributes["max_length"] = self.max
        return attributes


def _midnight(value: AnyType) -> AnyType:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


def _comparable(value: AnyType, bound: AnyType) -> tuple[AnyType, AnyType]:
    """Align dates and datetimes for comparison.

    Plain dates on either side become midnight datetimes; when only one side
    is timezone-aware, the naive side is taken as UTC.
    """
    if isinstance(value, date) or isinstance(bound, date):
        value, bound = _midnight(value), _midnight(bound)
    if isinstance(value, datetime) and isinstance(bound, datetime):
        if (value.tzinfo is None) != (bound.tzinfo is None):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            else:
                bound = bound.replace(tzinfo=timezone.utc)
    return value, bound


class Range(Check):
    """Numeric or date value must be in the specified range."""

    def __init__(
        self,
        min: AnyType = None,
        max: AnyType = None,
        min_exclusive: bool = False,
        max_exclusive: bool = False,
        message: Message = None,
    ):
        """Initialize range check.

        Args:
            min: Minimum value (inclusive by default)
            max: Maximum value (inclusive by default)
            min_exclusive: If True, value must be > min
            max_exclusive: If True, value must be < max
            message: Custom message
        """
        if min is not None and max is not None:
            low, high = _comparable(min, max)
            if low > high:
                raise SchemaDefinitionError(f"min ({min}) cannot be greater than max ({max})")
        super().__init__(message)
        self.min = min
        self.max = max
        self.min_exclusive = min_exclusive
        self.max_exclusive = max_exclusive

    def apply(self, value, schema, ctx, path):
        if self.min is not None:
            current, bound = _comparable(value, self.min)
            too_small = current <= bound if self.min_exclusive else current < bound
            if too_small:
                return value, ctx.issue(
                    schema, IssueCode.TOO_SMALL, path, value, self.message,
                    type=schema.kind, minimum=self.min, inclusive=not self.min_exclusive,
                    exact=False,
                )
        if self.max is not None:
            current, bound = _comparable(value, self.max)
            too_big = current >= bound if self.max_exclusive else current > bound
            if too_big:
                return value, ctx.issue(
                    schema, IssueCode.TOO_BIG, path, value, self.message,
                    type=schema.kind, maximum=self.max, inclusive=not self.max_exclusive,
                    exact=False,
                )
        return value, None

    def constraint_attributes(self, kind):
        attributes = {}
        if self.min is not None and not self.min_exclusive:
            attributes["min"] = self.min
        if self.max is not None and not self.max_exclusive:
            attributes["max"] = self.max
        return attributes


class Pattern(Check):
    """String value must match a regex pattern (searched anywhere)."""

    def __init__(self, pattern: str | RegexPattern, message: Message = None):
        """Initialize pattern check.

        Args:
            pattern: Regex pattern (string or compiled pattern)
            message: Custom message
        """
        super().__init__(message)
        if isinstance(pattern, str):
            try:
                self.regex = re.compile(pattern)
            except re.error as e:
                raise SchemaDefinitionError(
                    f"Invalid regular expression '{pattern}': {e}",
                    context={"pattern": pattern},
                ) from e
        else:
            self.regex = pattern
        self.pattern_str = self.regex.pattern

    def apply(self, value, schema, ctx, path):
        if self.regex.search(value):
            return value, None
        return value, ctx.issue(
            schema, IssueCode.INVALID_STRING_FORMAT, path, value, self.message,
            validation="regex", pattern=self.pattern_str,
        )

    def constraint_attributes(self, kind):
        return {"pattern": self.pattern_str}


_EMAIL = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+\-]@"
    r"(?:[A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$"
)
_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$"
)
_UUID = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")


def _is_email(value: str) -> bool:
    return bool(_EMAIL.fullmatch(value))


def _is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _is_uuid(value: str) -> bool:
    return bool(_UUID.fullmatch(value))


def _is_datetime(value: str) -> bool:
    if not _DATETIME.fullmatch(value):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


_FORMATS: dict[str, Callable[[str], bool]] = {
    "email": _is_email,
    "url": _is_url,
    "uuid": _is_uuid,
    "datetime": _is_datetime,
}


class Format(Check):
    """String value must be a well-formed email, url, uuid or ISO datetime."""

    def __init__(self, validation: str, message: Message = None):
        if validation not in _FORMATS:
            raise SchemaDefinitionError(f"Unknown string format: {validation}")
        super().__init__(message)
        self.validation = validation

    def apply(self, value, schema, ctx, path):
        if _FORMATS[self.validation](value):
            return value, None
        return value, ctx.issue(
            schema, IssueCode.INVALID_STRING_FORMAT, path, value, self.message,
            validation=self.validation,
        )


class Substring(Check):
    """String must include, start with, or end with a fixed text."""

    def __init__(self, validation: str, text: str, message: Message = None):
        super().__init__(message)
        self.validation = validation
        self.text = text

    def apply(self, value, schema, ctx, path):
        if self.validation == "includes":
            ok = self.text in value
        elif self.validation == "starts_with":
            ok = value.startswith(self.text)
        else:
            ok = value.endswith(self.text)
        if ok:
            return value, None
        return value, ctx.issue(
            schema, IssueCode.INVALID_STRING_FORMAT, path, value, self.message,
            validation=self.validation, **{self.validation: self.text},
        )


class Normalize(Check):
    """Rewrite a string for the checks that follow (trim, lower, upper)."""

    _FUNCTIONS: dict[str, Callable[[str], str]] = {
        "trim": str.strip,
        "to_lower": str.lower,
        "to_upper": str.upper,
    }

    def __init__(self, operation: str):
        super().__init__(None)
        self.operation = operation
        self.function = self._FUNCTIONS[operation]

    def apply(self, value, schema, ctx, path):
        return self.function(value), None


class Integer(Check):
    """Number must have no fractional part."""

    def apply(self, value, schema, ctx, path):
        if isinstance(value, int) or (math.isfinite(value) and float(value).is_integer()):
            return value, None
        return value, ctx.issue(
            schema, IssueCode.INVALID_TYPE, path, value, self.message,
            expected="integer", received="float",
        )

    def constraint_attributes(self, kind):
        return {"step": 1}


class MultipleOf(Check):
    """Number must be an integer multiple of a step."""

    def __init__(self, step: int | float, message: Message = None):
        if step <= 0:
            raise SchemaDefinitionError(f"multiple_of step must be positive: {step}")
        super().__init__(message)
        self.step = step

    def apply(self, value, schema, ctx, path):
        if isinstance(value, int) and isinstance(self.step, int):
            ok = value % self.step == 0
        else:
            quotient = value / self.step
            ok = math.isfinite(quotient) and abs(quotient - round(quotient)) <= 1e-9 * max(1.0, abs(quotient))
        if ok:
            return value, None
        return value, ctx.issue(
            schema, IssueCode.NOT_MULTIPLE_OF, path, value, self.message,
            multiple_of=self.step,
        )

    def constraint_attributes(self, kind):
        return {"step": self.step}


class Finite(Check):
    """Number must not be infinite."""

    def apply(self, value, schema, ctx, path):
        if isinstance(value, int) or math.isfinite(value):
            return value, None
        return value, ctx.issue(schema, IssueCode.NOT_FINITE, path, value, self.message)


def ensure_consistent(checks: tuple[Check, ...]) -> None:
    """Reject check lists whose combined bounds admit no value.

    Raises:
        SchemaDefinitionError: If the tightest lower bound exceeds the
            tightest upper bound
    """
    lengths = [check for check in checks if isinstance(check, Length)]
    mins = [check.min for check in lengths if check.min is not None]
    maxes = [check.max for check in lengths if check.max is not None]
    if mins and maxes and max(mins) > min(maxes):
        raise SchemaDefinitionError(
            f"min length ({max(mins)}) cannot be greater than max length ({min(maxes)})"
        )

    ranges = [check for check in checks if isinstance(check, Range)]
    lower = [(check.min, check.min_exclusive) for check in ranges if check.min is not None]
    upper = [(check.max, check.max_exclusive) for check in ranges if check.max is not None]
    for low, low_exclusive in lower:
        for high, high_exclusive in upper:
            low_value, high_value = _comparable(low, high)
            if low_value > high_value or (
                low_value == high_value and (low_exclusive or high_exclusive)
            ):
                raise SchemaDefinitionError(
                    f"Lower bound ({low}) is not below upper bound ({high})",
                    context={"min": low, "max": high},
                )
