"""Per-call validation state.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Union

from .config import DEFAULT_CONFIG, ValidationConfig
from .exceptions import ValidationCancelledError
from .issues import Issue, IssueCode, Path, default_message
from .values import MISSING

if TYPE_CHECKING:
    from .schema import Schema

logger = logging.getLogger(__name__)

Message = Union[str, Callable[[Issue], str], None]


class CancelSignal(Protocol):
    """Anything with an ``is_set()`` method, e.g. asyncio or threading Events."""

    def is_set(self) -> bool: ...


class _Pending:
    def __repr__(self) -> str:
        return "PENDING"


# Returned by ParseContext.settle() when an awaitable is met in sync mode
PENDING: Any = _Pending()


def render_message(message: Message, issue: Issue) -> str | None:
    """Render a static or callable message for a draft issue."""
    if message is None:
        return None
    if callable(message):
        return message(issue)
    return message


@dataclass
class ParseContext:
    """State for one top-level validation call.

    Each call allocates its own context; nothing here is shared between
    concurrent validations.

    Attributes:
        config: Validation configuration for this call
        coerce: Whether form-style coercion applies to every leaf
        is_async: Whether awaitable refinements may be awaited
        cancel: Optional cancel signal checked before pipeline steps
        in_progress: Lazy schema entries currently being validated
    """

    config: ValidationConfig = DEFAULT_CONFIG
    coerce: bool = False
    is_async: bool = False
    cancel: CancelSignal | None = None
    in_progress: set[tuple[int, int]] = field(default_factory=set)

    def issue(
        self,
        schema: Schema | None,
        code: IssueCode,
        path: Path,
        value: Any,
        message: Message = None,
        **context: Any,
    ) -> Issue:
        """Build an issue with its message resolved.

        Message sources are tried in order: the explicit message, the
        schema's own messages, the schema's error map, the configuration,
        and finally the default message for the code.

        Args:
            schema: Schema raising the issue (None for pipeline issues)
            code: Issue code
            path: Location of the failing value
            value: The failing value
            message: Explicit per-check message, if any
            **context: Code-specific metadata

        Returns:
            Issue with its message set
        """
        draft = Issue(
            code=code,
            path=tuple(path),
            context=context,
            input=value if self.config.report_input else MISSING,
        )
        text = render_message(message, draft)
        if text is None and schema is not None:
            text = schema._message_for(draft)
        if text is None:
            text = self.config.message_for(draft)
        if text is None:
            text = default_message(draft)
        return Issue(draft.code, draft.path, text, draft.context, draft.input)

    def absent_if_blank(self, value: Any) -> Any:
        """Under call-level coercion, treat an empty string as an absent value."""
        if self.coerce and isinstance(value, str) and value == "":
            return MISSING
        return value

    def check_cancelled(self) -> None:
        """Raise if the cancel signal has been set.

        Raises:
            ValidationCancelledError: If cancellation was requested
        """
        if self.cancel is not None and self.cancel.is_set():
            logger.debug("Validation cancelled")
            raise ValidationCancelledError("Validation was cancelled")

    async def settle(self, result: Any) -> Any:
        """Resolve a user callback's result.

        Awaitables are awaited in async mode. In sync mode they are closed
        and ``PENDING`` is returned so the caller can report an
        ``async_refinement`` issue.
        """
        if not inspect.isawaitable(result):
            return result
        if self.is_async:
            return await result
        if inspect.iscoroutine(result):
            result.close()
        return PENDING


def run_sync(coro: Any) -> Any:
    """Drive a validation coroutine that is known not to suspend.

    Synchronous validation never awaits a real awaitable (see
    ``ParseContext.settle``), so the coroutine finishes on its first step.
    """
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value
    coro.close()
    raise RuntimeError("Synchronous validation suspended unexpectedly")
