"""Issue model: the structured unit of validation failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .values import MISSING, display

PathSegment = str | int
Path = tuple[PathSegment, ...]


class IssueCode(str, Enum):
    """Taxonomy of validation failures.

    Attributes:
        INVALID_TYPE: Runtime type mismatch, including failed coercion
        INVALID_LITERAL: Value differs from a literal schema's value
        INVALID_ENUM_VALUE: Value is not one of an enum's options
        TOO_SMALL: Length, size or value below a bound
        TOO_BIG: Length, size or value above a bound
        INVALID_STRING_FORMAT: Regex, email, url, uuid, datetime or
            substring check failed
        UNRECOGNIZED_KEYS: Extra keys on a strict object
        INVALID_UNION: No union member accepted the value
        INVALID_UNION_DISCRIMINATOR: Discriminator matched no member
        INVALID_INTERSECTION_TYPES: Intersection outputs could not be merged
        NOT_MULTIPLE_OF: Number is not a multiple of the step
        NOT_FINITE: Number is infinite
        CUSTOM: Produced by refine or super_refine
        ASYNC_REFINEMENT: Awaitable step reached during synchronous validation
    """

    INVALID_TYPE = "invalid_type"
    INVALID_LITERAL = "invalid_literal"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    INVALID_STRING_FORMAT = "invalid_string_format"
    UNRECOGNIZED_KEYS = "unrecognized_keys"
    INVALID_UNION = "invalid_union"
    INVALID_UNION_DISCRIMINATOR = "invalid_union_discriminator"
    INVALID_INTERSECTION_TYPES = "invalid_intersection_types"
    NOT_MULTIPLE_OF = "not_multiple_of"
    NOT_FINITE = "not_finite"
    CUSTOM = "custom"
    ASYNC_REFINEMENT = "async_refinement"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Issue:
    """One validation failure located inside the input.

    Attributes:
        code: Failure kind
        path: Field names and list indices leading from the root of the
            input to the failing value; empty for root-level issues
        message: Resolved human-readable message
        context: Code-specific metadata (expected, received, minimum, ...)
        input: The offending value, or ``MISSING`` when not reported
    """

    code: IssueCode
    path: Path = ()
    message: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    input: Any = MISSING

    def __getitem__(self, key: str) -> Any:
        return self.context[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Read a context entry."""
        return self.context.get(key, default)

    def with_prefix(self, prefix: Path) -> Issue:
        """Return a copy of this issue with ``prefix`` prepended to its path."""
        if not prefix:
            return self
        return Issue(self.code, tuple(prefix) + self.path, self.message, self.context, self.input)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (context entries are inlined)."""
        data: dict[str, Any] = {
            "code": self.code.value,
            "path": list(self.path),
            "message": self.message,
        }
        for key, value in self.context.items():
            if key == "union_errors":
                data[key] = [[issue.to_dict() for issue in branch] for branch in value]
            else:
                data[key] = value
        return data


_SIZE_NOUNS = {
    "string": "character(s)",
    "array": "element(s)",
    "set": "element(s)",
}


def _bound_message(issue: Issue, small: bool) -> str:
    kind = issue.get("type", "number")
    bound = issue.get("minimum" if small else "maximum")
    inclusive = issue.get("inclusive", True)
    exact = issue.get("exact", False)
    if kind in _SIZE_NOUNS:
        label = "String" if kind == "string" else kind.capitalize()
        if exact:
            qualifier = "exactly"
        elif small:
            qualifier = "at least" if inclusive else "over"
        else:
            qualifier = "at most" if inclusive else "under"
        return f"{label} must contain {qualifier} {bound} {_SIZE_NOUNS[kind]}"

    label = {"date": "Date", "bigint": "BigInt"}.get(kind, "Number")
    if exact:
        relation = "exactly equal to"
    elif small:
        relation = "greater than or equal to" if inclusive else "greater than"
    else:
        relation = "less than or equal to" if inclusive else "less than"
    if kind == "date":
        relation = relation.replace("greater than", "after").replace("less than", "before")
    return f"{label} must be {relation} {bound}"


def default_message(issue: Issue) -> str:
    """Build the built-in English message for an issue.

    Args:
        issue: Issue whose code and context determine the message

    Returns:
        Default message text
    """
    code = issue.code
    if code == IssueCode.INVALID_TYPE:
        if issue.get("received") == "undefined":
            return "Required"
        return f"Expected {issue.get('expected')}, received {issue.get('received')}"
    if code == IssueCode.INVALID_LITERAL:
        return f"Invalid literal value, expected {display(issue.get('expected'))}"
    if code == IssueCode.INVALID_ENUM_VALUE:
        options = " | ".join(display(o) for o in issue.get("options", ()))
        received = display(issue.get("received", MISSING))
        return f"Invalid enum value. Expected {options}, received {received}"
    if code == IssueCode.TOO_SMALL:
        return _bound_message(issue, small=True)
    if code == IssueCode.TOO_BIG:
        return _bound_message(issue, small=False)
    if code == IssueCode.INVALID_STRING_FORMAT:
        validation = issue.get("validation", "regex")
        if validation == "includes":
            return f'Invalid input: must include "{issue.get("includes")}"'
        if validation == "starts_with":
            return f'Invalid input: must start with "{issue.get("starts_with")}"'
        if validation == "ends_with":
            return f'Invalid input: must end with "{issue.get("ends_with")}"'
        if validation == "regex":
            return "Invalid"
        return f"Invalid {validation}"
    if code == IssueCode.UNRECOGNIZED_KEYS:
        keys = ", ".join(f"'{k}'" for k in issue.get("keys", ()))
        return f"Unrecognized key(s) in object: {keys}"
    if code == IssueCode.INVALID_UNION:
        return "Invalid input"
    if code == IssueCode.INVALID_UNION_DISCRIMINATOR:
        options = " | ".join(display(o) for o in issue.get("options", ()))
        return f"Invalid discriminator value. Expected {options}"
    if code == IssueCode.INVALID_INTERSECTION_TYPES:
        return "Intersection results could not be merged"
    if code == IssueCode.NOT_MULTIPLE_OF:
        return f"Number must be a multiple of {issue.get('multiple_of')}"
    if code == IssueCode.NOT_FINITE:
        return "Number must be finite"
    if code == IssueCode.ASYNC_REFINEMENT:
        return "Asynchronous refinement encountered during synchronous validation; use validate_async()"
    return "Invalid input"


__all__ = ["IssueCode", "Issue", "Path", "PathSegment", "default_message"]
