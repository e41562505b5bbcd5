"""Composite schemas: objects, arrays, tuples, records, maps and sets.

Composite nodes recurse into their children with the child's location
appended to the path, and aggregate every child's issues before returning.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .checks import Check, Length, ensure_consistent
from .exceptions import SchemaDefinitionError
from .issues import IssueCode
from .result import ValidationResult
from .schema import Schema
from .values import MISSING

if TYPE_CHECKING:
    from .context import Message, ParseContext
    from .issues import Issue, Path
    from .primitives import Enum

UNKNOWN_KEY_POLICIES = ("strip", "strict", "passthrough")


def _key_names(keys: Iterable[str] | Mapping[str, Any]) -> list[str]:
    """Accept either an iterable of names or a ``{name: True}`` mapping."""
    if isinstance(keys, str):
        return [keys]
    if isinstance(keys, Mapping):
        return [name for name, selected in keys.items() if selected]
    return list(keys)


class Object(Schema):
    """Mapping with a declared set of fields.

    Args:
        shape: Mapping of field name to field schema
        unknown_keys: Policy for keys outside the shape: ``strip`` (drop
            them, the default), ``strict`` (report ``unrecognized_keys``) or
            ``passthrough`` (copy them verbatim)
        catchall: Schema validating every key outside the shape; takes
            precedence over ``unknown_keys``
        **kwargs: Message options accepted by ``Schema``
    """

    kind = "object"

    def __init__(
        self,
        shape: Mapping[str, Schema] | None = None,
        *,
        unknown_keys: str = "strip",
        catchall: Schema | None = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        if unknown_keys not in UNKNOWN_KEY_POLICIES:
            raise SchemaDefinitionError(
                f"Unknown keys policy must be one of {', '.join(UNKNOWN_KEY_POLICIES)}",
                context={"unknown_keys": unknown_keys},
            )
        fields: dict[str, Schema] = {}
        for name, field_schema in (shape or {}).items():
            if not isinstance(field_schema, Schema):
                raise SchemaDefinitionError(
                    f"Field '{name}' must be a Schema, got {type(field_schema).__name__}"
                )
            fields[name] = field_schema
        self._shape = MappingProxyType(fields)
        self.unknown_keys = unknown_keys
        self.catchall_schema = catchall
        self.strict_message: Message = None

    @property
    def shape(self) -> Mapping[str, Schema]:
        """Read-only view of the field schemas."""
        return self._shape

    def _with_shape(self, fields: Mapping[str, Schema]) -> Object:
        return self._copy(_shape=MappingProxyType(dict(fields)))

    def _check_known(self, names: list[str], operation: str) -> None:
        unknown = [name for name in names if name not in self._shape]
        if unknown:
            raise SchemaDefinitionError(
                f"{operation}() got unknown key(s): {', '.join(unknown)}",
                context={"keys": unknown},
            )

    async def _parse(self, value: Any, ctx: ParseContext, path: Path) -> ValidationResult:
        if not isinstance(value, Mapping):
            return self._type_issue(ctx, path, value, "object")

        output: dict[Any, Any] = {}
        issues: list[Issue] = []
        for name, field_schema in self._shape.items():
            result = await field_schema._parse(value.get(name, MISSING), ctx, path + (name,))
            if not result.valid:
                issues.extend(result.issues)
            elif result.value is not MISSING:
                output[name] = result.value

        extras = [key for key in value if key not in self._shape]
        if extras:
            if self.catchall_schema is not None:
                for key in extras:
                    result = await self.catchall_schema._parse(value[key], ctx, path + (key,))
                    if not result.valid:
                        issues.extend(result.issues)
                    elif result.value is not MISSING:
                        output[key] = result.value
            elif self.unknown_keys == "strict":
                issues.append(ctx.issue(
                    self, IssueCode.UNRECOGNIZED_KEYS, path, value, self.strict_message,
                    keys=extras,
                ))
            elif self.unknown_keys == "passthrough":
                for key in extras:
                    output[key] = value[key]

        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(output)

    # Unknown key policies

    def strict(self, message: Message = None) -> Object:
        """Report keys outside the shape as ``unrecognized_keys``."""
        return self._copy(unknown_keys="strict", catchall_schema=None, strict_message=message)

    def strip(self) -> Object:
        """Drop keys outside the shape (the default)."""
        return self._copy(unknown_keys="strip", catchall_schema=None)

    def passthrough(self) -> Object:
        """Copy keys outside the shape to the output unvalidated."""
        return self._copy(unknown_keys="passthrough", catchall_schema=None)

    def catchall(self, schema: Schema) -> Object:
        """Validate keys outside the shape against ``schema``."""
        return self._copy(catchall_schema=schema)

    # Derivation

    def pick(self, keys: Iterable[str] | Mapping[str, Any]) -> Object:
        """Object with only the named fields.

        Args:
            keys: Field names, or a ``{name: True}`` mapping

        Raises:
            SchemaDefinitionError: If a name is not a field of this object
        """
        names = _key_names(keys)
        self._check_known(names, "pick")
        return self._with_shape({name: self._shape[name] for name in self._shape if name in names})

    def omit(self, keys: Iterable[str] | Mapping[str, Any]) -> Object:
        """Object without the named fields."""
        names = _key_names(keys)
        self._check_known(names, "omit")
        return self._with_shape(
            {name: schema for name, schema in self._shape.items() if name not in names}
        )

    def extend(self, fields: Mapping[str, Schema]) -> Object:
        """Object with fields added or replaced."""
        return self._with_shape({**self._shape, **fields})

    def merge(self, other: Object) -> Object:
        """Combine two objects; ``other`` wins on shared fields and policies."""
        if not isinstance(other, Object):
            raise SchemaDefinitionError(f"merge() requires an Object, got {type(other).__name__}")
        merged = self._with_shape({**self._shape, **other.shape})
        return merged._copy(
            unknown_keys=other.unknown_keys,
            catchall_schema=other.catchall_schema,
            strict_message=other.strict_message,
        )

    def partial(self, keys: Iterable[str] | Mapping[str, Any] | None = None) -> Object:
        """Make fields optional (all fields, or only the named ones).

        Fields that already accept an absent value (optional or defaulted)
        are left unchanged, so defaults still apply.
        """
        from .effects import Default, Optional

        names = list(self._shape) if keys is None else _key_names(keys)
        self._check_known(names, "partial")
        fields = {}
        for name, schema in self._shape.items():
            if name in names and not isinstance(schema, (Optional, Default)):
                schema = schema.optional()
            fields[name] = schema
        return self._with_shape(fields)

    def required(self, keys: Iterable[str] | Mapping[str, Any] | None = None) -> Object:
        """Remove the optional wrapper from fields (all, or only the named ones)."""
        from .effects import Optional

        names = list(self._shape) if keys is None else _key_names(keys)
        self._check_known(names, "required")
        fields = {}
        for name, schema in self._shape.items():
            if name in names:
                while isinstance(schema, Optional):
                    schema = schema.unwrap()
            fields[name] = schema
        return self._with_shape(fields)

    def deep_partial(self) -> Object:
        """Partial applied recursively through nested objects, arrays and tuples."""
        from .effects import Default, Optional

        fields = {}
        for name, schema in self._shape.items():
            schema = _deep_partial(schema)
            if not isinstance(schema, (Optional, Default)):
                schema = schema.optional()
            fields[name] = schema
        return self._with_shape(fields)

    def keyof(self) -> Enum:
        """Enum of this object's field names."""
        from .primitives import Enum

        return Enum(list(self._shape))

    def __repr__(self) -> str:
        return f"Object({', '.join(self._shape)})"


def _deep_partial(schema: Schema) -> Schema:
    from .effects import Nullable, Optional

    if isinstance(schema, Object):
        return schema.deep_partial()
    if isinstance(schema, Array):
        return schema._copy(element=_deep_partial(schema.element))
    if isinstance(schema, Tuple):
        return schema._copy(items=tuple(_deep_partial(item) for item in schema.items))
    if isinstance(schema, Optional):
        return Optional(_deep_partial(schema.unwrap()))
    if isinstance(schema, Nullable):
        return Nullable(_deep_partial(schema.unwrap()))
    return schema


class _Sized(Schema):
    """Collection schema carrying length/size checks."""

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self.checks: tuple[Check, ...] = ()

    def _with_check(self, check: Check):
        checks = self.checks + (check,)
        ensure_consistent(checks)
        return self._copy(checks=checks)

    def _run_checks(self, value: Any, ctx: ParseContext, path: Path) -> list[Issue]:
        issues = []
        for check in self.checks:
            _, issue = check.apply(value, self, ctx, path)
            if issue is not None:
                issues.append(issue)
        return issues

    def min(self, length: int, message: Message = None):
        return self._with_check(Length(min=length, message=message))

    def max(self, length: int, message: Message = None):
        return self._with_check(Length(max=length, message=message))

    def nonempty(self, message: Message = None):
        return self.min(1, message)


class Array(_Sized):
    """List of elements matching one schema. The output is always a list."""

    kind = "array"

    def __init__(self, element: Schema, **kwargs: Any):
        super().__init__(**kwargs)
        self.element = element

    def length(self, length: int, message: Message = None) -> Array:
        return self._with_check(Length(min=length, max=length, message=message))

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if ctx.coerce and value is not MISSING and not isinstance(value, (list, tuple)):
            # Form data carries a lone value where a list was expected
            value = [value]

        if not isinstance(value, (list, tuple)):
            return self._type_issue(ctx, path, value, "array")

        output = []
        issues: list[Issue] = []
        for index, item in enumerate(value):
            result = await self.element._parse(item, ctx, path + (index,))
            if result.valid:
                output.append(result.value)
            else:
                issues.extend(result.issues)
        issues.extend(self._run_checks(value, ctx, path))

        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(output)

    def __repr__(self) -> str:
        return f"Array({self.element!r})"


class Set(_Sized):
    """Set of elements matching one schema. Accepts set or frozenset."""

    kind = "set"

    def __init__(self, element: Schema, **kwargs: Any):
        super().__init__(**kwargs)
        self.element = element

    def size(self, size: int, message: Message = None) -> Set:
        return self._with_check(Length(min=size, max=size, message=message))

    async def _parse(self, value, ctx, path):
        if not isinstance(value, (set, frozenset)):
            return self._type_issue(ctx, path, value, "set")

        output = set()
        issues: list[Issue] = []
        for index, item in enumerate(value):
            result = await self.element._parse(item, ctx, path + (index,))
            if result.valid:
                output.add(result.value)
            else:
                issues.extend(result.issues)
        issues.extend(self._run_checks(value, ctx, path))

        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(output)


class Tuple(Schema):
    """Fixed-position sequence, optionally followed by a variadic rest.

    Args:
        items: Schemas for each fixed position
        rest: Schema for every element beyond the fixed positions
    """

    kind = "tuple"

    def __init__(self, items: Iterable[Schema], rest: Schema | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.items = tuple(items)
        self.rest_schema = rest

    def rest(self, schema: Schema) -> Tuple:
        """Tuple accepting any number of trailing elements matching ``schema``."""
        return self._copy(rest_schema=schema)

    async def _parse(self, value, ctx, path):
        if not isinstance(value, (list, tuple)):
            return self._type_issue(ctx, path, value, "array")

        arity = len(self.items)
        issues: list[Issue] = []
        if len(value) < arity:
            issues.append(ctx.issue(
                self, IssueCode.TOO_SMALL, path, value,
                type="array", minimum=arity, inclusive=True, exact=self.rest_schema is None,
            ))
        elif len(value) > arity and self.rest_schema is None:
            issues.append(ctx.issue(
                self, IssueCode.TOO_BIG, path, value,
                type="array", maximum=arity, inclusive=True, exact=True,
            ))

        output = []
        for index, item in enumerate(value):
            schema = self.items[index] if index < arity else self.rest_schema
            if schema is None:
                break
            result = await schema._parse(item, ctx, path + (index,))
            if result.valid:
                output.append(result.value)
            else:
                issues.extend(result.issues)

        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(tuple(output) if isinstance(value, tuple) else output)


class Record(Schema):
    """Dictionary with arbitrary keys, validating every key and value.

    ``Record(value_schema)`` uses string keys.
    """

    kind = "record"
    _container: type | tuple[type, ...] = dict
    _expected = "object"

    def __init__(self, key: Schema, value: Schema | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        if value is None:
            from .primitives import String

            key, value = String(), key
        self.key_schema = key
        self.value_schema = value

    async def _parse(self, value, ctx, path):
        if not isinstance(value, self._container):
            return self._type_issue(ctx, path, value, self._expected)

        output: dict[Any, Any] = {}
        issues: list[Issue] = []
        for key, item in value.items():
            location = path + (key,)
            key_result = await self.key_schema._parse(key, ctx, location)
            item_result = await self.value_schema._parse(item, ctx, location)
            issues.extend(key_result.issues)
            issues.extend(item_result.issues)
            if key_result.valid and item_result.valid:
                output[key_result.value] = item_result.value

        if issues:
            return ValidationResult.failure(value, issues)
        return ValidationResult.success(output)


class Map(Record):
    """Any mapping type with keys and values validated; output is a dict."""

    kind = "map"
    _container = Mapping
    _expected = "map"

    def __init__(self, key: Schema, value: Schema, **kwargs: Any):
        super().__init__(key, value, **kwargs)
