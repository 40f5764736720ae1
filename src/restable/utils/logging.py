"""Structured logging helpers for restable."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional, Sequence

from ..security.redaction import bound_columns, redact_params

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s"


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger("restable")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"restable.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or uuid.uuid4().hex
    _correlation_id.set(token)
    return token


def get_correlation_id() -> str:
    cid = _correlation_id.get()
    if cid is None:
        cid = set_correlation_id()
    return cid


@contextmanager
def correlation_scope(value: Optional[str] = None) -> Iterator[str]:
    """
    Bind a correlation id for the duration of one request and restore the previous one after.
    """

    token = _correlation_id.set(value or uuid.uuid4().hex)
    try:
        yield _correlation_id.get() or ""
    finally:
        _correlation_id.reset(token)


class StatementTimer:
    """
    Context manager logging how long a statement took.

    Statements over ``threshold_ms`` are logged at WARNING, failures at ERROR,
    everything else at DEBUG. Parameters are redacted before they reach a record,
    by value and, for INSERT and UPDATE statements, by bound column name.
    """

    def __init__(
        self,
        name: str,
        logger: logging.Logger,
        *,
        sql: str | None = None,
        params: Sequence[Any] | None = None,
        threshold_ms: int = 100,
    ) -> None:
        self.name = name
        self.logger = logger
        self.sql = sql
        self.params = redact_params(params or (), bound_columns(sql) if sql else None)
        self.threshold_ms = threshold_ms
        self.elapsed_ms = 0.0
        self._start = 0.0

    def __enter__(self) -> "StatementTimer":
        self._start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_ms = (time.monotonic() - self._start) * 1000
        extra = {"sql": self.sql, "params": self.params, "elapsed_ms": self.elapsed_ms}
        if exc_type is not None:
            self.logger.error(
                "%s failed after %.2fms: %s", self.name, self.elapsed_ms, exc, extra=extra
            )
            return
        level = logging.WARNING if self.elapsed_ms >= self.threshold_ms else logging.DEBUG
        self.logger.log(level, "%s took %.2fms", self.name, self.elapsed_ms, extra=extra)


def time_call(
    name: str,
    logger: logging.Logger,
    *,
    sql: str | None = None,
    params: Sequence[Any] | None = None,
    threshold_ms: int = 100,
) -> StatementTimer:
    return StatementTimer(name, logger, sql=sql, params=params, threshold_ms=threshold_ms)
