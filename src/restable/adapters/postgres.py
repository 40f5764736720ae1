"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from ..dialects.postgres import PostgresDialect
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
        import psycopg

        return psycopg
    except ImportError:
        return None


@dataclass
class PostgresConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any
    explicit_tx: bool = False


class PostgresAdapter(DatabaseAdapter):
    """
    Adapter wrapping the psycopg 3 driver.

    Connections use ``psycopg.RawCursor`` so statements keep the server-side
    ``$n`` placeholders rendered by the dialect. Generated identifiers come
    from the ``RETURNING id`` row, never from cursor metadata.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._state: PostgresConnectionState | None = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def in_transaction(self) -> bool:
        return bool(self._state and self._state.explicit_tx)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("psycopg is required to use PostgresAdapter.")

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.postgres_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        try:
            connection = driver.connect(
                config.url,
                autocommit=bool(config.autocommit),
                cursor_factory=driver.RawCursor,
                **options,
            )
        except driver.Error as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        if config.isolation_level:
            level = config.isolation_level.strip().upper().replace(" ", "_")
            try:
                connection.isolation_level = driver.IsolationLevel[level]
            except KeyError as exc:
                raise AdapterConfigurationError(
                    f"Unknown isolation level: {config.isolation_level!r}"
                ) from exc

        self._state = PostgresConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_state(self) -> PostgresConnectionState:
        if not self._state:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        if getattr(self._state.connection, "closed", False):
            if self._state.explicit_tx:
                raise AdapterConnectionError("PostgreSQL connection closed inside a transaction.")
            self.logger.warning("PostgreSQL connection closed; reconnecting.")
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
            name="postgres.execute",
            logger=self.logger,
            threshold_ms=self.slow_query_ms,
            interrupt=state.connection.cancel,
            driver_error=state.driver.Error,
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
        # without autocommit psycopg opens the transaction on the first statement
        if state.config.autocommit:
            state.connection.execute("BEGIN")
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
