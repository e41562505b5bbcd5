"""Type coercion with predictable, consistent behavior.

Coercion converts raw input (mostly strings from forms and query strings)
into a schema's primitive kind before structural checks run. It is a pure
function of (value, target kind) and never partially succeeds.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any

from .values import MISSING, is_number


class _Uncoercible:
    def __repr__(self) -> str:
        return "UNCOERCIBLE"

    def __bool__(self) -> bool:
        return False


UNCOERCIBLE: Any = _Uncoercible()

# Decimal literal with optional sign, fraction and exponent
_NUMERIC = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGRAL = re.compile(r"[+-]?\d+")

COERCIBLE_KINDS = frozenset({"string", "number", "boolean", "date", "bigint"})


class Coercer:
    """Type coercion with predictable results.

    Always returns the coerced value or ``UNCOERCIBLE``; never raises.
    Values already of the target kind are returned unchanged.
    """

    def coerce(self, value: Any, kind: str) -> Any:
        """Coerce a value to the target primitive kind.

        Args:
            value: Value to coerce
            kind: One of ``string``, ``number``, ``boolean``, ``date``,
                ``bigint``

        Returns:
            The coerced value, or ``UNCOERCIBLE``
        """
        if kind not in COERCIBLE_KINDS:
            raise ValueError(f"Unsupported coercion target: {kind}")

        if self.matches(value, kind):
            return value

        try:
            return self._coerce_value(value, kind)
        except (ValueError, TypeError, OverflowError, OSError):
            return UNCOERCIBLE

    def matches(self, value: Any, kind: str) -> bool:
        """Check whether a value is already of the target kind."""
        if kind == "string":
            return isinstance(value, str)
        if kind == "number":
            return is_number(value) and not (isinstance(value, float) and math.isnan(value))
        if kind == "boolean":
            return isinstance(value, bool)
        if kind == "date":
            return isinstance(value, datetime)
        if kind == "bigint":
            return isinstance(value, int) and not isinstance(value, bool)
        return False

    def _coerce_value(self, value: Any, kind: str) -> Any:
        """Perform the actual coercion.

        Raises:
            ValueError: If coercion fails
        """
        if kind == "string":
            return self._to_string(value)
        elif kind == "number":
            return self._to_number(value)
        elif kind == "boolean":
            return self._to_boolean(value)
        elif kind == "date":
            return self._to_date(value)
        else:
            return self._to_bigint(value)

    def _to_string(self, value: Any) -> str:
        if value is MISSING:
            return "undefined"
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)

    def _to_number(self, value: Any) -> int | float:
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, str):
            text = value.strip()
            if _INTEGRAL.fullmatch(text):
                return int(text)
            if not _NUMERIC.fullmatch(text):
                raise ValueError(f"Not a numeric string: {value!r}")
            result = float(text)
        elif isinstance(value, datetime):
            result = value.timestamp() * 1000
        elif is_number(value):
            result = float(value)
        else:
            raise TypeError(f"Cannot coerce {type(value).__name__} to number")

        if not math.isfinite(result):
            raise ValueError(f"Non-finite number: {value!r}")
        return result

    def _to_boolean(self, value: Any) -> bool:
        if value is MISSING or value is None:
            return False
        if isinstance(value, str):
            return value != ""
        if isinstance(value, float) and math.isnan(value):
            return False
        if is_number(value):
            return value != 0
        return True

    def _to_date(self, value: Any) -> datetime:
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z") or text.endswith("z"):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if is_number(value):
            if not math.isfinite(value):
                raise ValueError(f"Non-finite timestamp: {value!r}")
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        raise TypeError(f"Cannot coerce {type(value).__name__} to date")

    def _to_bigint(self, value: Any) -> int:
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, str):
            text = value.strip()
            if not _INTEGRAL.fullmatch(text):
                raise ValueError(f"Not an integer string: {value!r}")
            return int(text)
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Float {value} cannot be losslessly converted to int")
            return int(value)
        raise TypeError(f"Cannot coerce {type(value).__name__} to bigint")


_default_coercer = Coercer()


def coerce(value: Any, kind: str) -> Any:
    """Coerce ``value`` to ``kind`` with the shared Coercer."""
    return _default_coercer.coerce(value, kind)
