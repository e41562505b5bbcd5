"""Leaf schemas: strings, numbers, booleans, dates, big integers, literals
and enums, plus the catch-all ``AnyValue``/``Unknown``/``Never`` kinds.
"""

from __future__ import annotations

import enum as enum_module
import math
from collections.abc import Iterable
from datetime import datetime
from re import Pattern as RegexPattern
from types import MappingProxyType
from typing import TYPE_CHECKING, Any as AnyType

from .checks import (
    Check,
    Finite,
    Format,
    Integer,
    Length,
    MultipleOf,
    Normalize,
    Pattern,
    Range,
    Substring,
    ensure_consistent,
)
from .coercer import UNCOERCIBLE, coerce as coerce_value
from .exceptions import SchemaDefinitionError
from .issues import IssueCode
from .result import ValidationResult
from .schema import Schema
from .values import MISSING, display, is_number, type_name

if TYPE_CHECKING:
    from .context import Message, ParseContext
    from .issues import Path


class Leaf(Schema):
    """Base class for leaf schemas.

    Handles coercion, the runtime type check and the ordered checks.
    Subclasses define ``kind``, ``expected`` and ``_accepts``.

    Args:
        coerce: Coerce inputs of any type to this leaf's kind before checking
        **kwargs: Message options accepted by ``Schema``
    """

    expected: str = "value"
    coercible: bool = False

    def __init__(self, *, coerce: bool = False, **kwargs: AnyType):
        super().__init__(**kwargs)
        if coerce and not self.coercible:
            raise SchemaDefinitionError(f"{type(self).__name__} does not support coercion")
        self.coerce = coerce
        self.checks: tuple[Check, ...] = ()

    def _with_check(self, check: Check):
        checks = self.checks + (check,)
        ensure_consistent(checks)
        return self._copy(checks=checks)

    def _accepts(self, value: AnyType) -> bool:
        raise NotImplementedError

    def _uncoercible_received(self, value: AnyType) -> str:
        return type_name(value)

    def _output(self, value: AnyType) -> AnyType:
        return value

    async def _parse(self, value: AnyType, ctx: ParseContext, path: Path) -> ValidationResult:
        value = ctx.absent_if_blank(value)

        if self.coercible and (self.coerce or (ctx.coerce and isinstance(value, str))):
            coerced = coerce_value(value, self.kind)
            if coerced is UNCOERCIBLE:
                return self._type_issue(
                    ctx, path, value, self.expected, self._uncoercible_received(value)
                )
            value = coerced

        if not self._accepts(value):
            return self._type_issue(ctx, path, value, self.expected)

        issues = []
        for check in self.checks:
            value, issue = check.apply(value, self, ctx, path)
            if issue is not None:
                issues.append(issue)
        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(self._output(value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(checks={len(self.checks)})"


class String(Leaf):
    """String schema with length, format and normalization checks."""

    kind = "string"
    expected = "string"
    coercible = True

    def _accepts(self, value):
        return isinstance(value, str)

    def min(self, length: int, message: Message = None) -> String:
        return self._with_check(Length(min=length, message=message))

    def max(self, length: int, message: Message = None) -> String:
        return self._with_check(Length(max=length, message=message))

    def length(self, length: int, message: Message = None) -> String:
        return self._with_check(Length(min=length, max=length, message=message))

    def nonempty(self, message: Message = None) -> String:
        """Equivalent to ``min(1)``."""
        return self.min(1, message)

    def regex(self, pattern: str | RegexPattern, message: Message = None) -> String:
        """Require ``pattern`` to match somewhere in the string (anchor it to match fully)."""
        return self._with_check(Pattern(pattern, message=message))

    def email(self, message: Message = None) -> String:
        return self._with_check(Format("email", message=message))

    def url(self, message: Message = None) -> String:
        return self._with_check(Format("url", message=message))

    def uuid(self, message: Message = None) -> String:
        return self._with_check(Format("uuid", message=message))

    def datetime(self, message: Message = None) -> String:
        """Require an ISO-8601 date-time with a time component."""
        return self._with_check(Format("datetime", message=message))

    def includes(self, text: str, message: Message = None) -> String:
        return self._with_check(Substring("includes", text, message=message))

    def starts_with(self, text: str, message: Message = None) -> String:
        return self._with_check(Substring("starts_with", text, message=message))

    def ends_with(self, text: str, message: Message = None) -> String:
        return self._with_check(Substring("ends_with", text, message=message))

    def trim(self) -> String:
        return self._with_check(Normalize("trim"))

    def to_lower(self) -> String:
        return self._with_check(Normalize("to_lower"))

    def to_upper(self) -> String:
        return self._with_check(Normalize("to_upper"))


class _Ordered(Leaf):
    """Leaf whose values can be compared against bounds."""

    def gt(self, value: AnyType, message: Message = None):
        return self._with_check(Range(min=value, min_exclusive=True, message=message))

    def gte(self, value: AnyType, message: Message = None):
        return self._with_check(Range(min=value, message=message))

    def lt(self, value: AnyType, message: Message = None):
        return self._with_check(Range(max=value, max_exclusive=True, message=message))

    def lte(self, value: AnyType, message: Message = None):
        return self._with_check(Range(max=value, message=message))

    min = gte
    max = lte


class _Numeric(_Ordered):

    def positive(self, message: Message = None):
        return self.gt(0, message)

    def negative(self, message: Message = None):
        return self.lt(0, message)

    def nonnegative(self, message: Message = None):
        return self.gte(0, message)

    def nonpositive(self, message: Message = None):
        return self.lte(0, message)

    def multiple_of(self, step: int | float, message: Message = None):
        return self._with_check(MultipleOf(step, message=message))

    step = multiple_of


class Number(_Numeric):
    """Int or float schema (bool is rejected, NaN is an ``invalid_type``)."""

    kind = "number"
    expected = "number"
    coercible = True

    def _accepts(self, value):
        return is_number(value) and not (isinstance(value, float) and math.isnan(value))

    def _uncoercible_received(self, value):
        return "nan"

    def int(self, message: Message = None) -> Number:
        """Require a value without fractional part."""
        return self._with_check(Integer(message=message))

    def finite(self, message: Message = None) -> Number:
        return self._with_check(Finite(message=message))


class BigInt(_Numeric):
    """Arbitrary-precision integer schema (Python ``int``, never float)."""

    kind = "bigint"
    expected = "bigint"
    coercible = True

    def _accepts(self, value):
        return isinstance(value, int) and not isinstance(value, bool)


class Boolean(Leaf):
    kind = "boolean"
    expected = "boolean"
    coercible = True

    def _accepts(self, value):
        return isinstance(value, bool)


class Date(_Ordered):
    """``datetime`` schema; bounds may be datetimes or dates."""

    kind = "date"
    expected = "date"
    coercible = True

    def _accepts(self, value):
        return isinstance(value, datetime)

    def _uncoercible_received(self, value):
        return "invalid_date"


def _same_value(left: AnyType, right: AnyType) -> bool:
    """Equality that does not conflate bools with ints."""
    return type(left) is type(right) and left == right


class Literal(Leaf):
    """Accept exactly one value."""

    kind = "literal"

    def __init__(self, value: AnyType, **kwargs: AnyType):
        super().__init__(**kwargs)
        self.value = value
        self.expected = display(value)

    def _accepts(self, value):
        return True

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if not _same_value(value, self.value):
            issue = ctx.issue(
                self, IssueCode.INVALID_LITERAL, path, value,
                expected=self.value, received=value,
            )
            return ValidationResult.failure(value, [issue])
        return ValidationResult.success(value)

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class _EnumValues:
    """Attribute access to enum options (``schema.enum.apple``)."""

    def __init__(self, options: Iterable[AnyType]):
        self._values = MappingProxyType({str(option): option for option in options})

    def __getattr__(self, name: str) -> AnyType:
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> AnyType:
        return self._values[name]

    def __iter__(self):
        return iter(self._values.values())


class Enum(Leaf):
    """Accept one of a fixed list of values."""

    kind = "enum"
    expected = "enum"

    def __init__(self, options: Iterable[AnyType], **kwargs: AnyType):
        super().__init__(**kwargs)
        options = list(options)
        if not options:
            raise SchemaDefinitionError("Enum requires at least one option")
        self.options = options

    @property
    def enum(self) -> _EnumValues:
        return _EnumValues(self.options)

    def _contains(self, value: AnyType) -> bool:
        return any(_same_value(value, option) for option in self.options)

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if not self._contains(value):
            issue = ctx.issue(
                self, IssueCode.INVALID_ENUM_VALUE, path, value,
                options=list(self.options), received=value,
            )
            return ValidationResult.failure(value, [issue])
        return ValidationResult.success(value)

    def extract(self, values: Iterable[AnyType]) -> Enum:
        """Enum restricted to ``values`` (each must be an existing option)."""
        values = list(values)
        unknown = [v for v in values if not self._contains(v)]
        if unknown:
            raise SchemaDefinitionError(
                f"Values not in enum: {', '.join(display(v) for v in unknown)}",
                context={"values": unknown},
            )
        return self._copy(options=values)

    def exclude(self, values: Iterable[AnyType]) -> Enum:
        """Enum without ``values``."""
        excluded = list(values)
        remaining = [o for o in self.options if not any(_same_value(o, v) for v in excluded)]
        if not remaining:
            raise SchemaDefinitionError("Enum requires at least one option")
        return self._copy(options=remaining)

    def __repr__(self) -> str:
        return f"Enum({self.options!r})"


class NativeEnum(Leaf):
    """Accept members of a Python ``enum.Enum`` class, or their values.

    The validated output is always the enum member.
    """

    kind = "native_enum"
    expected = "enum"

    def __init__(self, enum_class: type[enum_module.Enum], **kwargs: AnyType):
        super().__init__(**kwargs)
        if not (isinstance(enum_class, type) and issubclass(enum_class, enum_module.Enum)):
            raise SchemaDefinitionError(f"NativeEnum requires an Enum class, got {enum_class!r}")
        if not list(enum_class):
            raise SchemaDefinitionError("NativeEnum requires an Enum with at least one member")
        self.enum_class = enum_class

    @property
    def options(self) -> list[AnyType]:
        return [member.value for member in self.enum_class]

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if isinstance(value, self.enum_class):
            return ValidationResult.success(value)
        for member in self.enum_class:
            if _same_value(value, member.value):
                return ValidationResult.success(member)
        issue = ctx.issue(
            self, IssueCode.INVALID_ENUM_VALUE, path, value,
            options=self.options, received=value,
        )
        return ValidationResult.failure(value, [issue])


class AnyValue(Leaf):
    """Accept anything, including an absent value."""

    kind = "any"

    def _accepts(self, value):
        return True


class Unknown(AnyValue):
    kind = "unknown"


class Never(Leaf):
    """Reject everything."""

    kind = "never"
    expected = "never"

    def _accepts(self, value):
        return False


class Null(Leaf):
    """Accept only ``None``."""

    kind = "null"
    expected = "null"

    def _accepts(self, value):
        return value is None


class Undefined(Leaf):
    """Accept only an absent value."""

    kind = "undefined"
    expected = "undefined"

    def _accepts(self, value):
        return value is MISSING


Void = Undefined
