"""
Statement execution helpers shared by the DB-API adapters.

Two ways of obtaining a generated identifier live here: reading the single
row produced by ``INSERT ... RETURNING id`` and reading the cursor's native
``lastrowid``/``rowcount`` metadata.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Sequence

from ..core.errors import AdapterExecutionError, ExecutionCancelledError, ScanError
from ..core.nullable import NullInt64
from ..utils import time_call
from ..dialects.base import DialectCapabilities
from .base import ExecutionContext, GeneratedIdResult

_NUMBERED_RE = re.compile(r"[$?](\d+)")


def count_format_placeholders(sql: str) -> int:
    count = 0
    idx = 0
    while idx < len(sql) - 1:
        if sql[idx] == "%" and sql[idx + 1] == "s":
            count += 1
            idx += 2
            continue
        if sql[idx] == "%" and sql[idx + 1] == "%":
            idx += 2
            continue
        idx += 1
    return count


def count_numbered_placeholders(sql: str) -> int:
    """
    Highest ``$n``/``?n`` index in ``sql``; the statement binds that many parameters.
    """

    return max((int(match) for match in _NUMBERED_RE.findall(sql)), default=0)


def validate_params(sql: str, params: Sequence[Any], *, numbered: bool) -> None:
    expected = count_numbered_placeholders(sql) if numbered else count_format_placeholders(sql)
    if expected == 0 and params:
        raise AdapterExecutionError("Parameters provided but SQL statement has no placeholders.")
    if expected != len(params):
        raise AdapterExecutionError(
            f"Parameter count mismatch: expected {expected}, received {len(params)}."
        )


def run_statement(
    ctx: ExecutionContext,
    cursor: Any,
    sql: str,
    params: Sequence[Any],
    *,
    name: str,
    logger: logging.Logger,
    threshold_ms: int,
    interrupt: Callable[[], None] | None,
    driver_error: type[BaseException] | tuple[type[BaseException], ...],
) -> Any:
    """
    Execute ``sql`` on ``cursor`` under the context's cancellation and deadline.
    """

    try:
        with ctx.interruptible(interrupt):
            with time_call(name, logger, sql=sql, params=params, threshold_ms=threshold_ms):
                cursor.execute(sql, tuple(params))
    except driver_error as exc:
        if ctx.done:
            raise ExecutionCancelledError(f"{name} interrupted: {exc}") from exc
        raise AdapterExecutionError(f"{name} failed: {exc}") from exc
    return cursor


def scan_returned_id(cursor: Any) -> GeneratedIdResult:
    """
    Read the identifier from the one-row, one-column result of ``RETURNING id``.
    """

    if cursor.description is None:
        raise ScanError("Statement returned no result set; expected a RETURNING id row")
    if len(cursor.description) != 1:
        raise ScanError(f"Expected 1 returned column, got {len(cursor.description)}")
    row = cursor.fetchone()
    if row is None:
        raise ScanError("Statement returned no rows; expected the generated id")
    target = NullInt64().scan(row[0])
    if not target.valid:
        raise ScanError("Generated id is NULL")
    return GeneratedIdResult(last_insert_id=target.value, rows_affected=0)


def native_generated_id(cursor: Any) -> GeneratedIdResult:
    """
    Read the identifier and affected-row count from cursor metadata.
    """

    last_id = getattr(cursor, "lastrowid", None)
    if last_id is None:
        raise ScanError("Driver did not report a generated id for the statement")
    rowcount = getattr(cursor, "rowcount", -1)
    return GeneratedIdResult(
        last_insert_id=int(last_id),
        rows_affected=rowcount if rowcount is not None and rowcount >= 0 else 0,
    )


def read_generated_id(cursor: Any, capabilities: DialectCapabilities) -> GeneratedIdResult:
    if capabilities.supports_returning:
        return scan_returned_id(cursor)
    return native_generated_id(cursor)


def rollback_after_failure(rollback: Callable[[], None], logger: logging.Logger) -> None:
    """
    Roll back after a failed statement; a rollback error is logged, not raised.

    Callers re-raise the statement's own exception afterwards.
    """

    try:
        rollback()
    except Exception:
        logger.exception("Rollback after failed statement also failed")
