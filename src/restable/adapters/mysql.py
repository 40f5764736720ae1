"""
MySQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from ..dialects.mysql import MySQLDialect
from ..utils import get_logger, resolve_slow_query_ms
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    ExecutionContext,
    GeneratedIdResult,
)
from .execution import read_generated_id, rollback_after_failure, run_statement, validate_params

if TYPE_CHECKING:
    from ..persistence.transaction import Transaction


def _load_driver():
    try:
        import pymysql  # type: ignore[import-untyped]

        return pymysql
    except ImportError:
        try:
            import MySQLdb

            return MySQLdb
        except ImportError:
            return None


@dataclass
class MySQLConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any
    explicit_tx: bool = False


class MySQLAdapter(DatabaseAdapter):
    """
    Adapter wrapping a MySQL DB-API driver (PyMySQL or mysqlclient).

    Generated identifiers and affected-row counts come from cursor metadata.
    The driver offers no in-band statement cancel, so the execution context is
    checked before each statement only.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = MySQLDialect()
        self._state: MySQLConnectionState | None = None
        self.logger = get_logger("adapters.mysql")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def in_transaction(self) -> bool:
        return bool(self._state and self._state.explicit_tx)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError(
                "PyMySQL or mysqlclient is required to use MySQLAdapter."
            )
        if not config.dsn:
            raise AdapterConfigurationError(
                "ConnectionConfig must be built from a DSN for MySQL connections."
            )

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.mysql_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to MySQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        dsn = config.dsn
        connect_kwargs = {
            "host": dsn.host or "localhost",
            "user": dsn.username,
            "password": dsn.password,
            "database": dsn.database,
            **options,
        }
        if dsn.port:
            connect_kwargs["port"] = dsn.port

        try:
            connection = driver.connect(**connect_kwargs)
        except driver.MySQLError as exc:
            raise AdapterConnectionError("Failed to connect to MySQL.") from exc
        connection.autocommit(bool(config.autocommit))
        if config.isolation_level:
            level = config.isolation_level.strip().upper().replace("_", " ")
            cursor = connection.cursor()
            cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {level}")
            cursor.close()

        self._state = MySQLConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_state(self) -> MySQLConnectionState:
        if not self._state:
            raise AdapterConnectionError("MySQLAdapter is not connected.")
        if not getattr(self._state.connection, "open", True):
            if self._state.explicit_tx:
                raise AdapterConnectionError("MySQL connection closed inside a transaction.")
            self.logger.warning("MySQL connection closed; reconnecting.")
            self.connect(self._state.config)
        return self._state

    def execute(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()):
        state = self._ensure_state()
        params = tuple(params)
        validate_params(sql, params, numbered=self.dialect.capabilities.numbered_placeholders)
        cursor = state.connection.cursor()
        return run_statement(
            ctx,
            cursor,
            sql,
            params,
            name="mysql.execute",
            logger=self.logger,
            threshold_ms=self.slow_query_ms,
            interrupt=None,
            driver_error=state.driver.MySQLError,
        )

    def fetch_all(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        cursor = self.execute(ctx, sql, params)
        try:
            return [tuple(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def begin(self) -> None:
        state = self._ensure_state()
        if state.explicit_tx:
            raise AdapterTransactionError("A transaction is already open on this connection.")
        cursor = state.connection.cursor()
        cursor.execute("START TRANSACTION")
        cursor.close()
        state.explicit_tx = True

    def commit(self) -> None:
        state = self._ensure_state()
        try:
            state.connection.commit()
        finally:
            state.explicit_tx = False

    def rollback(self) -> None:
        state = self._ensure_state()
        try:
            state.connection.rollback()
        finally:
            state.explicit_tx = False

    def transact_directly(self, ctx: ExecutionContext, sql: str, *args: Any) -> GeneratedIdResult:
        state = self._ensure_state()
        if state.explicit_tx:
            raise AdapterTransactionError(
                "Direct execution is not allowed while a transaction is open; use transact_within_tx."
            )
        try:
            cursor = self.execute(ctx, sql, args)
            result = read_generated_id(cursor, self.dialect.capabilities)
        except Exception:
            if not state.config.autocommit:
                rollback_after_failure(state.connection.rollback, self.logger)
            raise
        if not state.config.autocommit:
            state.connection.commit()
        return result

    def transact_within_tx(
        self, ctx: ExecutionContext, tx: "Transaction", sql: str, *args: Any
    ) -> GeneratedIdResult:
        cursor = tx.execute(ctx, sql, args)
        return read_generated_id(cursor, self.dialect.capabilities)
