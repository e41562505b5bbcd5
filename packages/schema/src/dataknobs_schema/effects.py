"""Wrapper schemas: modifiers, lazy references and the refinement pipeline.

Modifiers (``Optional``, ``Nullable``, ``Default``, ``Catch``) decide what
happens to absent, null or invalid values before or after the wrapped
schema runs. Pipeline steps (``Refinement``, ``SuperRefinement``,
``Transform``, ``Pipeline``, ``Preprocess``) run user callbacks in
declaration order, each only after the schema it wraps has succeeded.

User callbacks may return awaitables. They are awaited by
``validate_async()``; synchronous validation reports them as an
``async_refinement`` issue instead.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from .context import PENDING
from .exceptions import SchemaCycleError, SchemaDefinitionError
from .issues import Issue, IssueCode
from .result import ValidationResult
from .schema import Schema
from .values import MISSING

if TYPE_CHECKING:
    from .context import Message, ParseContext
    from .issues import Path

logger = logging.getLogger(__name__)


def _materialize(value: Any) -> Any:
    """Call a factory, or return a plain value unchanged."""
    return value() if callable(value) else value


class Wrapper(Schema):
    """Schema wrapping exactly one inner schema."""

    def __init__(self, inner: Schema, **kwargs: Any):
        super().__init__(**kwargs)
        if not isinstance(inner, Schema):
            raise SchemaDefinitionError(
                f"{type(self).__name__} requires a Schema, got {type(inner).__name__}"
            )
        self.inner = inner

    def unwrap(self) -> Schema:
        """Return the wrapped schema."""
        return self.inner

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inner!r})"


class Optional(Wrapper):
    """Accept an absent value, producing ``MISSING``."""

    kind = "optional"

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if value is MISSING:
            return ValidationResult.success(MISSING)
        return await self.inner._parse(value, ctx, path)


class Nullable(Wrapper):
    """Accept ``None``."""

    kind = "nullable"

    async def _parse(self, value, ctx, path):
        if value is None:
            return ValidationResult.success(None)
        return await self.inner._parse(value, ctx, path)


class Default(Wrapper):
    """Substitute a default for an absent value (``None`` is not absent).

    Args:
        inner: Schema validating present values
        default: Default value, or a zero-argument factory called on each use
    """

    kind = "default"

    def __init__(self, inner: Schema, default: Any, **kwargs: Any):
        super().__init__(inner, **kwargs)
        self.default_value = default

    async def _parse(self, value, ctx, path):
        value = ctx.absent_if_blank(value)
        if value is MISSING:
            return ValidationResult.success(_materialize(self.default_value))
        return await self.inner._parse(value, ctx, path)


class Catch(Wrapper):
    """Replace any failure of the wrapped schema with a fallback value.

    Args:
        inner: Wrapped schema
        fallback: Fallback value, or a zero-argument factory called on each use
    """

    kind = "catch"

    def __init__(self, inner: Schema, fallback: Any, **kwargs: Any):
        super().__init__(inner, **kwargs)
        self.fallback = fallback

    async def _parse(self, value, ctx, path):
        result = await self.inner._parse(value, ctx, path)
        # Async steps hit in sync mode are a usage error, not a data failure
        if result.valid or result.async_issues:
            return result
        logger.debug(f"Catch replaced {len(result.issues)} issue(s) at {list(path)}")
        return ValidationResult.success(_materialize(self.fallback))


class Lazy(Schema):
    """Deferred schema reference for recursive structures.

    The getter runs once, on first use; the resolved schema is cached on
    this node and shared by every later validation.

    Example:
        ```python
        category = Object({
            "name": String(),
            "children": Lazy(lambda: category.array()),
        })
        ```
    """

    kind = "lazy"

    def __init__(self, getter: Callable[[], Schema], **kwargs: Any):
        super().__init__(**kwargs)
        self.getter = getter
        self._resolved: Schema | None = None
        self._resolving = False
        self._lock = threading.RLock()

    def _copy(self, **changes: Any) -> Lazy:
        clone = super()._copy(**changes)
        clone._lock = threading.RLock()
        return clone

    @property
    def schema(self) -> Schema:
        """The resolved schema.

        Raises:
            SchemaCycleError: If the getter chain resolves back to this node
            SchemaDefinitionError: If the getter does not return a Schema
        """
        if self._resolved is not None:
            return self._resolved
        with self._lock:
            if self._resolved is None:
                if self._resolving:
                    raise SchemaCycleError("Lazy schema resolves to itself", schema=self)
                self._resolving = True
                try:
                    resolved = self.getter()
                    if not isinstance(resolved, Schema):
                        raise SchemaDefinitionError(
                            f"Lazy getter must return a Schema, got {type(resolved).__name__}"
                        )
                    while isinstance(resolved, Lazy):
                        resolved = resolved.schema
                finally:
                    self._resolving = False
                logger.debug(f"Resolved lazy schema to {resolved!r}")
                self._resolved = resolved
        return self._resolved

    async def _parse(self, value, ctx, path):
        key = (id(self), id(value))
        if key in ctx.in_progress:
            raise SchemaCycleError(
                f"Lazy schema re-entered with the same value at {list(path)}", schema=self
            )
        ctx.in_progress.add(key)
        try:
            return await self.schema._parse(value, ctx, path)
        finally:
            ctx.in_progress.discard(key)

    def __repr__(self) -> str:
        return "Lazy(resolved)" if self._resolved is not None else "Lazy()"


def _async_issue(ctx: ParseContext, path: Path, value: Any, step: str) -> ValidationResult:
    issue = ctx.issue(None, IssueCode.ASYNC_REFINEMENT, path, value, step=step)
    return ValidationResult.failure(value, [issue])


class Refinement(Wrapper):
    """Single-issue predicate check run after the wrapped schema succeeds."""

    kind = "effects"

    def __init__(
        self,
        inner: Schema,
        predicate: Callable[[Any], Any],
        message: Message = None,
        *,
        path: Sequence[str | int] | None = None,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(inner)
        self.predicate = predicate
        self.message = message
        self.issue_path = tuple(path or ())
        self.params = dict(params or {})

    async def _parse(self, value, ctx, path):
        result = await self.inner._parse(value, ctx, path)
        if not result.valid:
            return result
        ctx.check_cancelled()
        outcome = await ctx.settle(self.predicate(result.value))
        if outcome is PENDING:
            return _async_issue(ctx, path, result.value, "refine")
        if outcome:
            return result
        issue = ctx.issue(
            None, IssueCode.CUSTOM, path + self.issue_path, result.value, self.message,
            **self.params,
        )
        return ValidationResult.failure(result.value, [issue])


class RefinementContext:
    """Issue collector handed to ``super_refine`` callbacks.

    Attributes:
        path: Location of the value being refined
        issues: Issues added so far
    """

    def __init__(self, ctx: ParseContext, path: Path, value: Any):
        self._ctx = ctx
        self._value = value
        self.path = path
        self.issues: list[Issue] = []

    def add_issue(
        self,
        message: Message = None,
        *,
        code: IssueCode | str = IssueCode.CUSTOM,
        path: Sequence[str | int] | None = None,
        **context: Any,
    ) -> None:
        """Record an issue.

        Args:
            message: Issue message (defaults to the code's default message)
            code: Issue code, ``custom`` unless given
            path: Path relative to the refined value
            **context: Extra metadata stored on the issue
        """
        self.issues.append(self._ctx.issue(
            None, IssueCode(code), self.path + tuple(path or ()), self._value, message,
            **context,
        ))


class SuperRefinement(Wrapper):
    """Multi-issue check; the callback adds zero or more issues."""

    kind = "effects"

    def __init__(self, inner: Schema, fn: Callable[[Any, RefinementContext], Any]):
        super().__init__(inner)
        self.fn = fn

    async def _parse(self, value, ctx, path):
        result = await self.inner._parse(value, ctx, path)
        if not result.valid:
            return result
        ctx.check_cancelled()
        collector = RefinementContext(ctx, path, result.value)
        outcome = await ctx.settle(self.fn(result.value, collector))
        if outcome is PENDING:
            return _async_issue(ctx, path, result.value, "super_refine")
        if collector.issues:
            return ValidationResult.failure(result.value, collector.issues)
        return result


class Transform(Wrapper):
    """Map the validated value to a new value."""

    kind = "effects"

    def __init__(self, inner: Schema, fn: Callable[[Any], Any]):
        super().__init__(inner)
        self.fn = fn

    async def _parse(self, value, ctx, path):
        result = await self.inner._parse(value, ctx, path)
        if not result.valid:
            return result
        ctx.check_cancelled()
        output = await ctx.settle(self.fn(result.value))
        if output is PENDING:
            return _async_issue(ctx, path, result.value, "transform")
        return ValidationResult.success(output)


class Pipeline(Wrapper):
    """Validate the wrapped schema's output against a second schema."""

    kind = "pipe"

    def __init__(self, inner: Schema, target: Schema):
        super().__init__(inner)
        self.target = target

    async def _parse(self, value, ctx, path):
        result = await self.inner._parse(value, ctx, path)
        if not result.valid:
            return result
        ctx.check_cancelled()
        return await self.target._parse(result.value, ctx, path)


class Preprocess(Wrapper):
    """Map the raw input before validating it against a schema.

    Args:
        fn: Function applied to the raw value (``MISSING`` when absent)
        schema: Schema validating the mapped value
    """

    kind = "effects"

    def __init__(self, fn: Callable[[Any], Any], schema: Schema, **kwargs: Any):
        super().__init__(schema, **kwargs)
        self.fn = fn

    async def _parse(self, value, ctx, path):
        ctx.check_cancelled()
        mapped = await ctx.settle(self.fn(value))
        if mapped is PENDING:
            return _async_issue(ctx, path, value, "preprocess")
        return await self.inner._parse(mapped, ctx, path)


def preprocess(fn: Callable[[Any], Any], schema: Schema) -> Preprocess:
    """Build a schema that maps raw input with ``fn`` before validating it."""
    return Preprocess(fn, schema)
