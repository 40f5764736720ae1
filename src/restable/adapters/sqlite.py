"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..security.dsns import parse_dsn
from ..utils import get_logger, resolve_slow_query_ms
from .base import (
    AdapterConnectionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    ExecutionContext,
    GeneratedIdResult,
)
from .execution import read_generated_id, run_statement, validate_params

if TYPE_CHECKING:
    from ..persistence.transaction import Transaction


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection
    explicit_tx: bool = False


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.

    The connection runs in sqlite3 autocommit mode; explicit transactions are
    opened with ``BEGIN`` and closed with ``COMMIT``/``ROLLBACK``. Running
    statements are aborted through ``Connection.interrupt``.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = SQLiteDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def in_transaction(self) -> bool:
        return bool(self._state and self._state.explicit_tx)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._database_path(config)
        timeout = config.timeout if config.timeout is not None else 5.0

        self.logger.info("Opening SQLite database %s", config.descriptive_label())
        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None,
                timeout=timeout,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database {path!r}.") from exc
        connection.execute("PRAGMA foreign_keys = ON")

        self._state = SQLiteConnectionState(connection)
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    def _ensure_state(self) -> SQLiteConnectionState:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def execute(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        state = self._ensure_state()
        params = tuple(params)
        validate_params(sql, params, numbered=self.dialect.capabilities.numbered_placeholders)
        return run_statement(
            ctx,
            state.connection.cursor(),
            sql,
            params,
            name="sqlite.execute",
            logger=self.logger,
            threshold_ms=self.slow_query_ms,
            interrupt=state.connection.interrupt,
            driver_error=sqlite3.Error,
        )

    def fetch_all(self, ctx: ExecutionContext, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        cursor = self.execute(ctx, sql, params)
        try:
            return [tuple(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        state = self._ensure_state()
        if state.explicit_tx:
            raise AdapterTransactionError("A transaction is already open on this connection.")
        self._control(state, "BEGIN")
        state.explicit_tx = True

    def commit(self) -> None:
        state = self._ensure_state()
        try:
            self._control(state, "COMMIT")
        finally:
            state.explicit_tx = False

    def rollback(self) -> None:
        state = self._ensure_state()
        try:
            self._control(state, "ROLLBACK")
        finally:
            state.explicit_tx = False

    # ------------------------------------------------------------------ #
    def transact_directly(self, ctx: ExecutionContext, sql: str, *args: Any) -> GeneratedIdResult:
        state = self._ensure_state()
        if state.explicit_tx:
            raise AdapterTransactionError(
                "Direct execution is not allowed while a transaction is open; use transact_within_tx."
            )
        cursor = self.execute(ctx, sql, args)
        return read_generated_id(cursor, self.dialect.capabilities)

    def transact_within_tx(
        self, ctx: ExecutionContext, tx: "Transaction", sql: str, *args: Any
    ) -> GeneratedIdResult:
        cursor = tx.execute(ctx, sql, args)
        return read_generated_id(cursor, self.dialect.capabilities)

    @staticmethod
    def _control(state: SQLiteConnectionState, statement: str) -> None:
        try:
            state.connection.execute(statement)
        except sqlite3.Error as exc:
            raise AdapterTransactionError(f"{statement} failed: {exc}") from exc

    @staticmethod
    def _database_path(config: ConnectionConfig) -> str:
        """
        File path from the DSN, without scheme, driver suffix or query options.

        ``sqlite:///app.db`` is relative, ``sqlite:////var/app.db`` absolute; an
        empty path or ``:memory:`` opens an in-memory database.
        """

        if config.dsn is None and "://" not in config.url:
            return config.url
        dsn = config.dsn or parse_dsn(config.url)
        path = dsn.path[1:] if dsn.path.startswith("/") else dsn.path
        return path or ":memory:"
