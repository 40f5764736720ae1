"""Redaction of statement parameters and DSN options before they are logged."""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

REDACTED_VALUE = "***"

SENSITIVE_NAME_TOKENS = (
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "access_key",
    "private_key",
    "sslkey",
    "ssl_key",
    "sslcert",
    "ssl_cert",
    "sslrootcert",
    "ssl_ca",
)

SENSITIVE_VALUE_TOKENS = (
    "password",
    "secret",
    "token",
    "bearer",
    "authorization",
)


_INSERT_COLUMNS_RE = re.compile(r"^\s*INSERT\s+INTO\s+[^\s(]+\s*\(([^)]*)\)", re.IGNORECASE)
_UPDATE_ASSIGNMENTS_RE = re.compile(
    r"^\s*UPDATE\s+\S+\s+SET\s+(.*?)\s+WHERE\s+(\w+)\s*=", re.IGNORECASE | re.DOTALL
)


def _compact(value: str) -> str:
    return "".join(ch for ch in value if ch.isalnum())


def is_sensitive_name(name: str) -> bool:
    """
    True for column names and option keys such as ``user_password`` or ``sslKey``.
    """

    normalized = name.lower()
    compact = _compact(normalized)
    return any(token in normalized or _compact(token) in compact for token in SENSITIVE_NAME_TOKENS)


def is_sensitive_value(value: str) -> bool:
    normalized = value.lower()
    return any(token in normalized for token in SENSITIVE_VALUE_TOKENS)


def redact_query_params(query: dict[str, str]) -> dict[str, str]:
    return {key: REDACTED_VALUE if is_sensitive_name(key) else val for key, val in query.items()}


def redact_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(item) for item in value)
    if isinstance(value, bytes):
        decoded = value.decode("utf-8", errors="ignore")
        return REDACTED_VALUE if decoded and is_sensitive_value(decoded) else value
    if isinstance(value, str) and is_sensitive_value(value):
        return REDACTED_VALUE
    return value


def bound_columns(sql: str) -> list[str] | None:
    """
    Column names in the order CreateSingle and UpdateSingle statements bind parameters.

    ``INSERT INTO t(a, b) VALUES(...)`` binds ``a, b``; ``UPDATE t SET a = .., b = ..
    WHERE id = ..`` binds ``a, b, id``. Other statements return ``None``.
    """

    match = _INSERT_COLUMNS_RE.match(sql)
    if match:
        return [column.strip() for column in match.group(1).split(",")]
    match = _UPDATE_ASSIGNMENTS_RE.match(sql)
    if match:
        columns = [assignment.split("=", 1)[0].strip() for assignment in match.group(1).split(",")]
        return columns + [match.group(2)]
    return None


def redact_params(params: Iterable[Any], columns: Sequence[str] | None = None) -> list[Any]:
    """
    Redact positional statement parameters.

    When ``columns`` is given (see ``bound_columns``) it lines up with
    ``params`` position by position, and values bound to a
    sensitive column are masked regardless of their content.
    """

    redacted: list[Any] = []
    for index, value in enumerate(params):
        if columns is not None and index < len(columns) and is_sensitive_name(columns[index]):
            redacted.append(REDACTED_VALUE)
        else:
            redacted.append(redact_value(value))
    return redacted
