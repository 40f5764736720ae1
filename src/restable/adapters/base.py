"""
Adapter protocol definitions, connection configuration and execution context.
"""

from __future__ import annotations

import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, Protocol, Sequence

from ..core.errors import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ExecutionCancelledError,
    ScanError,
)
from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, parse_dsn

if TYPE_CHECKING:
    from ..persistence.transaction import Transaction

__all__ = [
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "ConnectionConfig",
    "DatabaseAdapter",
    "ExecutionCancelledError",
    "ExecutionContext",
    "GeneratedIdResult",
    "SSLConfig",
    "ScanError",
]


@dataclass
class SSLConfig:
    mode: str | None = None
    rootcert: str | None = None
    cert: str | None = None
    key: str | None = None
    ca: str | None = None
    check_hostname: bool | None = None

    def postgres_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.mode:
            options["sslmode"] = self.mode
        if self.rootcert:
            options["sslrootcert"] = self.rootcert
        if self.cert:
            options["sslcert"] = self.cert
        if self.key:
            options["sslkey"] = self.key
        return options

    def mysql_options(self) -> dict[str, Any]:
        ssl: dict[str, Any] = {}
        if self.ca:
            ssl["ca"] = self.ca
        if self.cert:
            ssl["cert"] = self.cert
        if self.key:
            ssl["key"] = self.key
        if self.check_hostname is not None:
            ssl["check_hostname"] = self.check_hostname
        return {"ssl": ssl} if ssl else {}


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_SSL_KEYS = {
    "sslmode": "mode",
    "sslrootcert": "rootcert",
    "sslcert": "cert",
    "sslkey": "key",
    "ssl_ca": "ca",
    "ssl_cert": "cert",
    "ssl_key": "key",
}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: str, *, key: str, cast: Callable[[str], Any]) -> Any:
    try:
        return cast(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid numeric value for '{key}': {value!r}") from exc


def _parse_ssl(query: dict[str, str]) -> SSLConfig | None:
    ssl = SSLConfig()
    found = False
    for key, attr in _SSL_KEYS.items():
        if key in query:
            setattr(ssl, attr, query.pop(key))
            found = True
    if "ssl_check_hostname" in query:
        ssl.check_hostname = _parse_bool(query.pop("ssl_check_hostname"), key="ssl_check_hostname")
        found = True
    return ssl if found else None


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.
    """

    url: str
    autocommit: bool = False
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] | None = None
    ssl: SSLConfig | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config by parsing the DSN string.

        ``autocommit``, ``timeout``, ``isolation_level`` and SSL keys are lifted
        out of the query string; everything else is passed to the driver.
        """

        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        parsed_autocommit = (
            _parse_bool(query.pop("autocommit"), key="autocommit") if "autocommit" in query else None
        )
        parsed_timeout = (
            _parse_number(query.pop("timeout"), key="timeout", cast=float)
            if "timeout" in query
            else None
        )
        parsed_isolation_level = query.pop("isolation_level", None)
        parsed_ssl = _parse_ssl(query)
        options = {
            key: _parse_number(value, key=key, cast=int) if key == "connect_timeout" else value
            for key, value in query.items()
        }
        options.update(kwargs.pop("options", None) or {})

        autocommit = kwargs.pop("autocommit", parsed_autocommit)
        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=bool(autocommit),
            isolation_level=kwargs.pop("isolation_level", parsed_isolation_level),
            timeout=kwargs.pop("timeout", parsed_timeout),
            options=options or None,
            ssl=kwargs.pop("ssl", parsed_ssl),
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def redacted_dsn(self) -> str:
        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class ExecutionContext:
    """
    Cancellation and deadline carrier for database calls.

    While a statement runs, adapters register an interrupt callback through
    ``interruptible``; it fires when ``cancel()`` is called or the deadline
    passes, so the driver aborts the statement instead of running to completion.
    """

    def __init__(self, timeout: float | None = None, *, deadline: float | None = None) -> None:
        if timeout is not None and deadline is not None:
            raise ValueError("Pass either timeout or deadline, not both")
        if timeout is not None:
            deadline = time.monotonic() + timeout
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._interrupts: list[Callable[[], None]] = []

    @classmethod
    def background(cls) -> "ExecutionContext":
        return cls()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            interrupts = list(self._interrupts)
        for interrupt in interrupts:
            interrupt()

    def check(self) -> None:
        if self.cancelled:
            raise ExecutionCancelledError("Execution context was cancelled")
        if self.expired:
            raise ExecutionCancelledError("Execution context deadline exceeded")

    @contextmanager
    def interruptible(self, interrupt: Callable[[], None] | None) -> Iterator[None]:
        self.check()
        if interrupt is None:
            yield
            return
        with self._lock:
            self._interrupts.append(interrupt)
        timer: threading.Timer | None = None
        try:
            # a cancel() racing the registration above saw no interrupt to fire
            self.check()
            remaining = self.remaining()
            if remaining is not None:
                timer = threading.Timer(remaining, interrupt)
                timer.daemon = True
                timer.start()
            yield
        finally:
            if timer is not None:
                timer.cancel()
            with self._lock:
                self._interrupts.remove(interrupt)


@dataclass(frozen=True)
class GeneratedIdResult:
    """
    Outcome of an insert: the generated identifier and the affected-row count.

    Dialects that return the identifier through ``RETURNING`` cannot report a
    row count and always use 0, which callers must read as "unknown".
    """

    last_insert_id: int
    rows_affected: int = 0


class DatabaseAdapter(Protocol):
    """
    Adapter interface exposing database operations used by higher layers.
    """

    dialect: Dialect
    slow_query_ms: int

    @property
    def in_transaction(self) -> bool: ...

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()) -> Any:
        """
        Execute a single SQL statement returning a cursor-like object.
        """

    def fetch_all(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        """
        Execute a row-returning statement and return every row.
        """

    def begin(self) -> None:
        """
        Start an explicit transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction context.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction context.
        """

    def transact_directly(self, ctx: ExecutionContext, sql: str, *args: Any) -> GeneratedIdResult:
        """
        Run an insert as its own unit of work and report the generated identifier.
        """

    def transact_within_tx(
        self, ctx: ExecutionContext, tx: "Transaction", sql: str, *args: Any
    ) -> GeneratedIdResult:
        """
        Run an insert inside ``tx`` and report the generated identifier; never commits.
        """
