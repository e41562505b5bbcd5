"""Union, discriminated union and intersection schemas.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .exceptions import SchemaDefinitionError
from .issues import IssueCode
from .result import ValidationResult
from .schema import Schema
from .values import MISSING, display

if TYPE_CHECKING:
    from .context import ParseContext
    from .issues import Path

logger = logging.getLogger(__name__)


class Union(Schema):
    """Accept a value matching any of the member schemas.

    Every member is attempted; the first success in declaration order wins.
    When no member succeeds, a single ``invalid_union`` issue is reported
    whose ``union_errors`` context holds each member's issues in order.
    """

    kind = "union"

    def __init__(self, options: Iterable[Schema], **kwargs: Any):
        super().__init__(**kwargs)
        options = tuple(options)
        if not options:
            raise SchemaDefinitionError("Union requires at least one member")
        self.options = options

    def or_(self, other: Schema) -> Union:
        return self._copy(options=self.options + (other,))

    async def _parse(self, value, ctx, path):
        results = [await option._parse(value, ctx, path) for option in self.options]
        for result in results:
            if result.valid:
                return result
            if result.async_issues:
                return ValidationResult.failure(value, result.async_issues)
        issue = ctx.issue(
            self, IssueCode.INVALID_UNION, path, value,
            union_errors=[result.issues for result in results],
        )
        return ValidationResult.failure(value, [issue])

    def __repr__(self) -> str:
        return f"Union({', '.join(repr(o) for o in self.options)})"


def _discriminator_values(schema: Schema) -> list[Any]:
    """Values a discriminator field schema accepts (literal or enum only)."""
    from .effects import Default, Optional
    from .primitives import Enum, Literal, NativeEnum

    if isinstance(schema, Literal):
        return [schema.value]
    if isinstance(schema, NativeEnum):
        return schema.options
    if isinstance(schema, Enum):
        return list(schema.options)
    if isinstance(schema, (Optional, Default)):
        return _discriminator_values(schema.unwrap())
    return []


class DiscriminatedUnion(Schema):
    """Union whose member is selected by the value of one field.

    Args:
        discriminator: Name of the field selecting the member
        options: Object schemas, each declaring the discriminator as a
            literal or enum field with values unique across members

    Raises:
        SchemaDefinitionError: If a member is not an object, lacks the
            discriminator, or repeats another member's value
    """

    kind = "discriminated_union"

    def __init__(self, discriminator: str, options: Iterable[Schema], **kwargs: Any):
        from .composites import Object

        super().__init__(**kwargs)
        options = tuple(options)
        if not options:
            raise SchemaDefinitionError("DiscriminatedUnion requires at least one member")

        lookup: dict[tuple[type, Any], Schema] = {}
        for index, option in enumerate(options):
            if not isinstance(option, Object):
                raise SchemaDefinitionError(
                    f"DiscriminatedUnion member {index} must be an Object schema",
                    context={"index": index},
                )
            field_schema = option.shape.get(discriminator)
            if field_schema is None:
                raise SchemaDefinitionError(
                    f"DiscriminatedUnion member {index} has no '{discriminator}' field",
                    context={"index": index, "discriminator": discriminator},
                )
            values = _discriminator_values(field_schema)
            if not values:
                raise SchemaDefinitionError(
                    f"Discriminator '{discriminator}' of member {index} must be a literal or enum",
                    context={"index": index, "discriminator": discriminator},
                )
            for value in values:
                key = (type(value), value)
                if key in lookup:
                    raise SchemaDefinitionError(
                        f"Duplicate discriminator value {display(value)} for '{discriminator}'",
                        context={"discriminator": discriminator, "value": value},
                    )
                lookup[key] = option

        self.discriminator = discriminator
        self.options = options
        self._lookup = lookup

    @property
    def discriminator_values(self) -> list[Any]:
        return [value for _, value in self._lookup]

    def _select(self, tag: Any) -> Schema | None:
        if isinstance(tag, enum.Enum):
            tag = tag.value
        try:
            return self._lookup.get((type(tag), tag))
        except TypeError:
            # Unhashable tag
            return None

    async def _parse(self, value, ctx, path):
        if not isinstance(value, Mapping):
            return self._type_issue(ctx, path, value, "object")

        tag = value.get(self.discriminator, MISSING)
        option = self._select(tag)
        if option is None:
            issue = ctx.issue(
                self, IssueCode.INVALID_UNION_DISCRIMINATOR, path + (self.discriminator,), tag,
                options=self.discriminator_values,
            )
            return ValidationResult.failure(value, [issue])
        return await option._parse(value, ctx, path)


class _MergeConflict(Exception):
    pass


def _merge_values(left: Any, right: Any) -> Any:
    """Merge the outputs of both sides of an intersection.

    Mappings merge key by key, sequences of equal length merge element by
    element, and any other pair must be equal.

    Raises:
        _MergeConflict: If the outputs cannot be merged
    """
    if left is right:
        return left
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        merged = dict(left)
        for key, item in right.items():
            merged[key] = _merge_values(left[key], item) if key in left else item
        return merged
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            raise _MergeConflict()
        return [_merge_values(a, b) for a, b in zip(left, right)]
    if type(left) is type(right) and left == right:
        return left
    raise _MergeConflict()


class Intersection(Schema):
    """Accept values matching both schemas, merging their outputs."""

    kind = "intersection"

    def __init__(self, left: Schema, right: Schema, **kwargs: Any):
        super().__init__(**kwargs)
        self.left = left
        self.right = right

    async def _parse(self, value, ctx, path: Path) -> ValidationResult:
        left = await self.left._parse(value, ctx, path)
        right = await self.right._parse(value, ctx, path)
        if not (left.valid and right.valid):
            return ValidationResult.failure(value, left.issues + right.issues)
        try:
            merged = _merge_values(left.value, right.value)
        except _MergeConflict:
            logger.debug(f"Intersection outputs could not be merged at {list(path)}")
            issue = ctx.issue(self, IssueCode.INVALID_INTERSECTION_TYPES, path, value)
            return ValidationResult.failure(value, [issue])
        return ValidationResult.success(merged)

    def __repr__(self) -> str:
        return f"Intersection({self.left!r}, {self.right!r})"
