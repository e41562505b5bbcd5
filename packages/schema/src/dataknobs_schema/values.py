"""Helpers for inspecting untyped input values.

Inputs arrive as plain Python values (as produced by JSON decoding, form
parsing, or application code). This module names their runtime kinds and
provides the ``MISSING`` sentinel standing in for an absent value.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any


class _Missing:
    """Sentinel type for an absent value (distinct from ``None``)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict) -> _Missing:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def is_missing(value: Any) -> bool:
    """Check whether a value is the ``MISSING`` sentinel."""
    return value is MISSING


def is_number(value: Any) -> bool:
    """Check for an int or float, excluding bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value: Any) -> str:
    """Name the runtime kind of a value using the issue vocabulary.

    Args:
        value: Any input value

    Returns:
        One of ``string``, ``number``, ``nan``, ``boolean``, ``null``,
        ``undefined``, ``array``, ``object``, ``date``, ``set``, ``map``
        or the Python type name for anything else
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and math.isnan(value):
        return "nan"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (datetime, date)):
        return "date"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, (set, frozenset)):
        return "set"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def display(value: Any) -> str:
    """Render a value for inclusion in a message."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f"'{value}'"
    return str(value)
