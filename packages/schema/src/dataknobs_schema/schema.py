"""Schema base class with fluent, mutation-free API.

Every schema node is immutable: modifier, check, derivation and pipeline
methods return a new node and leave the receiver untouched, so one base
schema can be derived into several variants safely.

Validation is implemented once, as a coroutine (``_parse``). The
synchronous entry points drive that coroutine to completion without an event
loop; they never suspend because awaitables returned by user callbacks are
reported as ``async_refinement`` issues instead of being awaited.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from .config import DEFAULT_CONFIG, ValidationConfig
from .context import CancelSignal, Message, ParseContext, render_message, run_sync
from .issues import Issue, IssueCode, Path
from .result import ValidationResult
from .values import type_name

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .composites import Array
    from .config import ErrorMap
    from .effects import (
        Catch,
        Default,
        Nullable,
        Optional,
        Pipeline,
        Refinement,
        RefinementContext,
        SuperRefinement,
        Transform,
    )
    from .unions import Intersection, Union

S = TypeVar("S", bound="Schema")


class Schema(ABC):
    """Base class for all schema nodes.

    Args:
        error: Message (or callable receiving the draft issue) used for any
            issue this node raises itself
        required_error: Message used when the value is absent
        invalid_type_error: Message used for type mismatches
        error_map: Callable mapping a draft issue to a message or None
        description: Free-form description of the schema
    """

    kind: str = "schema"

    def __init__(
        self,
        *,
        error: Message = None,
        required_error: Message = None,
        invalid_type_error: Message = None,
        error_map: ErrorMap | None = None,
        description: str | None = None,
    ):
        self.error = error
        self.required_error = required_error
        self.invalid_type_error = invalid_type_error
        self.error_map = error_map
        self.description = description

    def _copy(self: S, **changes: Any) -> S:
        """Shallow copy with attributes replaced (children are shared)."""
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, name, value)
        return clone

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @abstractmethod
    async def _parse(self, value: Any, ctx: ParseContext, path: Path) -> ValidationResult:
        """Validate ``value`` located at ``path``.

        Args:
            value: Input value (``MISSING`` when absent)
            ctx: Per-call parse context
            path: Location of the value inside the top-level input

        Returns:
            ValidationResult for this node
        """

    def _message_for(self, issue: Issue) -> str | None:
        """Resolve this schema's own message for an issue it raised."""
        if issue.code == IssueCode.INVALID_TYPE:
            if issue.get("received") == "undefined" and self.required_error is not None:
                return render_message(self.required_error, issue)
            if self.invalid_type_error is not None:
                return render_message(self.invalid_type_error, issue)
        if self.error is not None:
            return render_message(self.error, issue)
        if self.error_map is not None:
            return self.error_map(issue)
        return None

    def _type_issue(
        self, ctx: ParseContext, path: Path, value: Any, expected: str, received: str | None = None
    ) -> ValidationResult:
        issue = ctx.issue(
            self, IssueCode.INVALID_TYPE, path, value,
            expected=expected, received=received or type_name(value),
        )
        return ValidationResult.failure(value, [issue])

    # Entry points

    def validate(
        self,
        value: Any,
        *,
        coerce: bool | None = None,
        config: ValidationConfig | None = None,
    ) -> ValidationResult:
        """Validate a value synchronously.

        Args:
            value: Value to validate (``MISSING`` for an absent value)
            coerce: Apply form-style coercion to every leaf; defaults to
                ``config.coerce``
            config: Validation configuration

        Returns:
            ValidationResult; never raises for invalid input
        """
        config = config or DEFAULT_CONFIG
        ctx = ParseContext(
            config=config,
            coerce=config.coerce if coerce is None else coerce,
            is_async=False,
        )
        return run_sync(self._parse(value, ctx, ()))

    async def validate_async(
        self,
        value: Any,
        *,
        coerce: bool | None = None,
        config: ValidationConfig | None = None,
        cancel: CancelSignal | None = None,
    ) -> ValidationResult:
        """Validate a value, awaiting asynchronous refinements in order.

        Args:
            value: Value to validate
            coerce: Apply form-style coercion to every leaf
            config: Validation configuration
            cancel: Signal checked before every refinement/transform step

        Returns:
            ValidationResult

        Raises:
            ValidationCancelledError: If ``cancel`` is set during validation
        """
        config = config or DEFAULT_CONFIG
        ctx = ParseContext(
            config=config,
            coerce=config.coerce if coerce is None else coerce,
            is_async=True,
            cancel=cancel,
        )
        return await self._parse(value, ctx, ())

    def parse(self, value: Any, **options: Any) -> Any:
        """Validate and return the output value.

        Raises:
            SchemaValidationError: If validation fails
        """
        return self.validate(value, **options).unwrap()

    async def parse_async(self, value: Any, **options: Any) -> Any:
        """Asynchronously validate and return the output value.

        Raises:
            SchemaValidationError: If validation fails
        """
        result = await self.validate_async(value, **options)
        return result.unwrap()

    def is_valid(self, value: Any, **options: Any) -> bool:
        """Check validity without inspecting issues."""
        return self.validate(value, **options).valid

    # Modifiers

    def optional(self) -> Optional:
        """Accept an absent value."""
        from .effects import Optional

        return Optional(self)

    def nullable(self) -> Nullable:
        """Accept ``None``."""
        from .effects import Nullable

        return Nullable(self)

    def nullish(self) -> Optional:
        """Accept ``None`` or an absent value."""
        return self.nullable().optional()

    def default(self, value: Any) -> Default:
        """Substitute ``value`` (or the result of calling it) when absent."""
        from .effects import Default

        return Default(self, value)

    def catch(self, fallback: Any) -> Catch:
        """Substitute ``fallback`` (or the result of calling it) on failure."""
        from .effects import Catch

        return Catch(self, fallback)

    def describe(self: S, description: str) -> S:
        """Return a copy carrying a description."""
        return self._copy(description=description)

    # Pipeline

    def refine(
        self,
        predicate: Callable[[Any], Any],
        message: Message = None,
        *,
        path: Sequence[str | int] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Refinement:
        """Add a single-issue predicate check.

        Args:
            predicate: Returns truthy for valid values (may be async)
            message: Message for the ``custom`` issue
            path: Path (relative to this value) to report the issue at
            params: Extra context stored on the issue

        Returns:
            New schema running the predicate after this one succeeds
        """
        from .effects import Refinement

        return Refinement(self, predicate, message, path=path, params=params)

    def super_refine(self, fn: Callable[[Any, RefinementContext], Any]) -> SuperRefinement:
        """Add a multi-issue check; ``fn`` calls ``ctx.add_issue()`` per failure."""
        from .effects import SuperRefinement

        return SuperRefinement(self, fn)

    def transform(self, fn: Callable[[Any], Any]) -> Transform:
        """Map the validated value to a new value."""
        from .effects import Transform

        return Transform(self, fn)

    def pipe(self, target: Schema) -> Pipeline:
        """Validate this schema's output against ``target``."""
        from .effects import Pipeline

        return Pipeline(self, target)

    # Composition

    def or_(self, other: Schema) -> Union:
        """Union of this schema and ``other``."""
        from .unions import Union

        return Union([self, other])

    def and_(self, other: Schema) -> Intersection:
        """Intersection of this schema and ``other``."""
        from .unions import Intersection

        return Intersection(self, other)

    def array(self) -> Array:
        """Array whose elements match this schema."""
        from .composites import Array

        return Array(self)


def validate(
    schema: Schema,
    value: Any,
    *,
    coerce: bool | None = None,
    config: ValidationConfig | None = None,
) -> ValidationResult:
    """Validate ``value`` against ``schema`` synchronously."""
    return schema.validate(value, coerce=coerce, config=config)


async def validate_async(
    schema: Schema,
    value: Any,
    *,
    coerce: bool | None = None,
    config: ValidationConfig | None = None,
    cancel: CancelSignal | None = None,
) -> ValidationResult:
    """Validate ``value`` against ``schema``, awaiting async refinements."""
    return await schema.validate_async(value, coerce=coerce, config=config, cancel=cancel)
