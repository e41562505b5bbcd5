"""Static constraint introspection.

Reads the declared shape of an object schema, without validating anything,
to produce per-field input attributes (required, bounds, pattern, step)
for UI collaborators.
"""

from __future__ import annotations

import re
from typing import Any

from .checks import Pattern
from .composites import Array, Object, Set
from .effects import (
    Catch,
    Default,
    Nullable,
    Optional,
    Pipeline,
    Preprocess,
    Refinement,
    SuperRefinement,
    Transform,
)
from .primitives import Enum, Leaf, NativeEnum
from .schema import Schema

_NOT_REQUIRED = (Optional, Nullable, Default, Catch)
_PIPELINE = (Refinement, SuperRefinement, Transform, Pipeline, Preprocess)


def _unwrap(schema: Schema) -> tuple[Schema, bool]:
    """Strip modifiers and pipeline steps, tracking whether the field is required."""
    required = True
    while True:
        if isinstance(schema, _NOT_REQUIRED):
            required = False
            schema = schema.inner
        elif isinstance(schema, _PIPELINE):
            schema = schema.inner
        else:
            return schema, required


def _field_constraints(schema: Schema) -> dict[str, Any]:
    schema, required = _unwrap(schema)
    constraints: dict[str, Any] = {"required": required}

    if isinstance(schema, (Array, Set)):
        constraints["multiple"] = True
    if isinstance(schema, (NativeEnum, Enum)):
        constraints["pattern"] = "|".join(re.escape(str(option)) for option in schema.options)
        return constraints

    checks = getattr(schema, "checks", ())
    if isinstance(schema, (Leaf, Array, Set)):
        for check in checks:
            constraints.update(check.constraint_attributes(schema.kind))
        patterns = [check for check in checks if isinstance(check, Pattern)]
        if len(patterns) > 1:
            # No single attribute can express several patterns
            del constraints["pattern"]
    return constraints


def static_constraints(schema: Schema) -> dict[str, dict[str, Any]]:
    """Summarize the declared constraints of an object schema's fields.

    Only the immediate fields are read. Coercion, refinements and
    transforms never run; a field behind a pipeline step reports the
    constraints of its input side.

    Args:
        schema: Object schema, possibly wrapped in refinements

    Returns:
        Mapping of field name to attributes among ``required``, ``min``,
        ``max``, ``min_length``, ``max_length``, ``pattern``, ``step`` and
        ``multiple``; empty for non-object schemas
    """
    schema, _ = _unwrap(schema)
    if not isinstance(schema, Object):
        return {}
    return {name: _field_constraints(field) for name, field in schema.shape.items()}


__all__ = ["static_constraints"]
