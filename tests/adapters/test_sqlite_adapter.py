import logging
import sqlite3

import pytest

from restable.adapters import (
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    ExecutionCancelledError,
    ExecutionContext,
    SQLiteAdapter,
)
from restable.persistence import Transaction
from restable.query import RelationContext


@pytest.fixture
def adapter(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'test.db'}"))
    adapter.execute(
        ExecutionContext(),
        "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email VARCHAR(80), age INTEGER)",
    )
    yield adapter
    adapter.close()


def insert_sql(adapter, columns):
    return adapter.dialect.catalog.render("CreateSingle", RelationContext.build("users", columns))


def count_users(adapter):
    return adapter.fetch_all(ExecutionContext(), "SELECT COUNT(*) FROM users")[0][0]


def test_connect_creates_database(tmp_path):
    adapter = SQLiteAdapter()
    connection = adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'connect.db'}"))
    assert isinstance(connection, sqlite3.Connection)
    adapter.close()


def test_transact_directly_reports_lastrowid_and_rowcount(adapter):
    sql = insert_sql(adapter, ["name", "email", "age"])
    first = adapter.transact_directly(ExecutionContext(), sql, "Ada", "ada@example.com", 36)
    second = adapter.transact_directly(ExecutionContext(), sql, "Alan", "alan@example.com", 41)
    assert (first.last_insert_id, first.rows_affected) == (1, 1)
    assert second.last_insert_id == 2
    assert count_users(adapter) == 2


def test_transact_within_tx_shares_the_transaction_boundary(adapter):
    sql = insert_sql(adapter, ["name"])
    tx = Transaction(adapter).begin()
    result = adapter.transact_within_tx(ExecutionContext(), tx, sql, "Ada")
    assert result.last_insert_id == 1
    tx.rollback()
    assert count_users(adapter) == 0

    with Transaction(adapter) as tx:
        adapter.transact_within_tx(ExecutionContext(), tx, sql, "Ada")
        adapter.transact_within_tx(ExecutionContext(), tx, sql, "Alan")
    assert count_users(adapter) == 2


def test_direct_execution_refused_inside_transaction(adapter):
    tx = Transaction(adapter).begin()
    with pytest.raises(AdapterTransactionError):
        adapter.transact_directly(ExecutionContext(), insert_sql(adapter, ["name"]), "Ada")
    tx.rollback()


def test_driver_errors_are_wrapped(adapter):
    with pytest.raises(AdapterExecutionError):
        adapter.transact_directly(ExecutionContext(), insert_sql(adapter, ["email"]), "x@example.com")


def test_expired_deadline_is_checked_before_execution(adapter):
    ctx = ExecutionContext(timeout=0)
    with pytest.raises(ExecutionCancelledError):
        adapter.execute(ctx, "SELECT 1")


def test_deadline_interrupts_long_running_statement(adapter):
    ctx = ExecutionContext(timeout=0.05)
    runaway = (
        "WITH RECURSIVE counter(n) AS (SELECT 1 UNION ALL SELECT n + 1 FROM counter)"
        " SELECT COUNT(*) FROM counter"
    )
    with pytest.raises(ExecutionCancelledError):
        adapter.fetch_all(ctx, runaway)


def test_update_template_binds_identifier_last(adapter):
    adapter.transact_directly(ExecutionContext(), insert_sql(adapter, ["name", "age"]), "Ada", 36)
    update = adapter.dialect.catalog.render(
        "UpdateSingle", RelationContext.build("users", ["name", "age"])
    )
    adapter.execute(ExecutionContext(), update, ("Ada Lovelace", 37, 1))
    rows = adapter.fetch_all(ExecutionContext(), "SELECT name, age FROM users WHERE id = ?1", (1,))
    assert rows == [("Ada Lovelace", 37)]


@pytest.mark.parametrize("scheme", ["sqlite3", "sqlite+pysqlite"])
def test_connect_accepts_scheme_aliases(tmp_path, scheme):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn(f"{scheme}:///{tmp_path / 'alias.db'}"))
    adapter.close()
    assert (tmp_path / "alias.db").exists()


def test_connect_ignores_query_options_in_path(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn(f"sqlite:///{tmp_path / 'opts.db'}?timeout=3"))
    adapter.close()
    assert sorted(path.name for path in tmp_path.iterdir()) == ["opts.db"]


def test_connect_without_dsn_uses_url(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=str(tmp_path / "plain.db")))
    adapter.close()
    assert (tmp_path / "plain.db").exists()


def test_memory_database():
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn("sqlite:///:memory:"))
    assert adapter.fetch_all(ExecutionContext(), "SELECT 1") == [(1,)]
    adapter.close()


def test_sensitive_columns_are_masked_in_statement_logs(adapter, caplog):
    adapter.execute(ExecutionContext(), "ALTER TABLE users ADD COLUMN user_password TEXT")
    sql = insert_sql(adapter, ["name", "user_password"])
    with caplog.at_level(logging.DEBUG, logger="restable.adapters.sqlite"):
        adapter.transact_directly(ExecutionContext(), sql, "Ada", "hunter2")
    record = [r for r in caplog.records if r.name == "restable.adapters.sqlite"][-1]
    assert record.params == ["Ada", "***"]
