"""
Nullable scan destinations for result columns.

Every column of every row gets a fresh container; ``scan`` coerces the raw
driver value into the container's type and ``value`` yields ``None`` for SQL
NULL.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from .errors import ScanError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_TRUE_STRINGS = {"1", "t", "true", "y", "yes", "on"}
_FALSE_STRINGS = {"0", "f", "false", "n", "no", "off"}

# currency symbols and group separators in locale-formatted MONEY text
_MONEY_NOISE = re.compile(r"[^0-9.\-]")


def _as_text(raw: Any) -> Any:
    if isinstance(raw, memoryview):
        raw = bytes(raw)
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return raw


class NullableValue:
    """
    Base container; subclasses set ``kind`` and implement ``_coerce``.
    """

    kind: ClassVar[str] = "unknown"

    __slots__ = ("valid", "_value")

    def __init__(self) -> None:
        self.valid = False
        self._value: Any = None

    @property
    def value(self) -> Any:
        return self._value if self.valid else None

    def scan(self, raw: Any) -> "NullableValue":
        if raw is None:
            self.valid = False
            self._value = None
            return self
        try:
            self._value = self._coerce(raw)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ScanError(
                f"Cannot scan {type(raw).__name__} value {raw!r} into {type(self).__name__}"
            ) from exc
        self.valid = True
        return self

    def _coerce(self, raw: Any) -> Any:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NullableValue):
            return NotImplemented
        return type(self) is type(other) and self.valid == other.valid and self.value == other.value

    def __repr__(self) -> str:
        if not self.valid:
            return f"{type(self).__name__}(NULL)"
        return f"{type(self).__name__}({self._value!r})"


class NullString(NullableValue):
    kind = "text"
    __slots__ = ()

    def _coerce(self, raw: Any) -> str:
        raw = _as_text(raw)
        if isinstance(raw, (datetime, date, time)):
            return raw.isoformat()
        return str(raw)


class NullInt64(NullableValue):
    kind = "integer"
    __slots__ = ()

    def _coerce(self, raw: Any) -> int:
        raw = _as_text(raw)
        if isinstance(raw, bool):
            value = int(raw)
        elif isinstance(raw, int):
            value = raw
        elif isinstance(raw, (float, Decimal)):
            if raw != int(raw):
                raise ValueError("non-integral number")
            value = int(raw)
        elif isinstance(raw, str):
            value = int(raw.strip())
        else:
            raise TypeError(f"unsupported type {type(raw).__name__}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise OverflowError("value out of 64-bit range")
        return value


class NullFloat64(NullableValue):
    kind = "float"
    __slots__ = ()

    def _coerce(self, raw: Any) -> float:
        raw = _as_text(raw)
        if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
            return float(raw)
        if isinstance(raw, str):
            text = raw.strip()
            try:
                return float(Decimal(text))
            except InvalidOperation:
                pass
            try:
                return float(Decimal(_MONEY_NOISE.sub("", text)))
            except InvalidOperation as exc:
                raise ValueError(str(exc)) from exc
        raise TypeError(f"unsupported type {type(raw).__name__}")


class NullBool(NullableValue):
    kind = "boolean"
    __slots__ = ()

    def _coerce(self, raw: Any) -> bool:
        raw = _as_text(raw)
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int) and raw in (0, 1):
            return bool(raw)
        if isinstance(raw, str):
            normalized = raw.strip().lower()
            if normalized in _TRUE_STRINGS:
                return True
            if normalized in _FALSE_STRINGS:
                return False
        raise ValueError("not a boolean")


class NullTime(NullableValue):
    """
    Timestamp container; also holds dates and time-of-day values as returned by the driver.

    MySQL TIME columns arrive as ``timedelta`` (they may be negative or exceed
    24 hours) and are kept as such.
    """

    kind = "timestamp"
    __slots__ = ()

    def _coerce(self, raw: Any) -> datetime | date | time | timedelta:
        raw = _as_text(raw)
        if isinstance(raw, (datetime, date, time, timedelta)):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                return time.fromisoformat(text)
        raise TypeError(f"unsupported type {type(raw).__name__}")
