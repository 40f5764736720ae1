import datetime

import pytest

from restable.adapters import AdapterConfigurationError, ExecutionContext, ScanError
from restable.backend import Backend, ColumnType, backend_for_dsn, get_backend, registered_backends
from restable.config import ResourceDescriptor
from restable.core import NullFloat64, NullInt64, NullString, NullTime
from restable.query import Relationship


@pytest.fixture
def sqlite_backend(tmp_path):
    backend = backend_for_dsn(f"sqlite:///{tmp_path / 'backend.db'}")
    backend.adapter.execute(
        ExecutionContext(),
        "CREATE TABLE invoices (id INTEGER PRIMARY KEY, number VARCHAR(20), total REAL, issued DATE)",
    )
    yield backend
    backend.close()


def test_registry_names():
    assert registered_backends() == ("mysql", "postgresql", "sqlite")


@pytest.mark.parametrize(
    "name, expected",
    [("postgres", "postgresql"), ("PostgreSQL", "postgresql"), ("mysql", "mysql"), ("sqlite3", "sqlite")],
)
def test_get_backend_resolves_aliases(name, expected):
    backend = get_backend(name)
    assert isinstance(backend, Backend)
    assert backend.name == expected
    assert backend.adapter.dialect is backend.dialect


def test_unknown_backend():
    with pytest.raises(AdapterConfigurationError):
        get_backend("oracle")


def test_convert_uses_dialect_type_map():
    backend = get_backend("postgresql")
    assert isinstance(backend.convert("INT8"), NullInt64)
    assert isinstance(backend.convert("NUMERIC"), NullFloat64)
    assert isinstance(backend.convert("TIMESTAMPTZ"), NullTime)
    assert isinstance(backend.convert("JSONB"), NullString)


def test_render_for_descriptor():
    backend = get_backend("postgresql")
    descriptor = ResourceDescriptor(
        "invoice", "invoices", (Relationship("lines", "invoice_id"),)
    )
    sql = backend.render_for("GetSingleWithRelationships", descriptor)
    assert sql == (
        "SELECT * FROM invoices AS _invoices"
        " LEFT JOIN lines ON lines.invoice_id = _invoices.id"
        " WHERE _invoices.id = $1"
    )


def test_describe_table_and_scan_row(sqlite_backend):
    columns = sqlite_backend.describe_table(ExecutionContext(), "invoices")
    assert columns == [
        ColumnType("id", "INTEGER"),
        ColumnType("number", "VARCHAR(20)"),
        ColumnType("total", "REAL"),
        ColumnType("issued", "DATE"),
    ]
    row = sqlite_backend.scan_row(columns, (1, "INV-1", None, "2024-02-29"))
    assert row == {"id": 1, "number": "INV-1", "total": None, "issued": datetime.datetime(2024, 2, 29)}


def test_scan_row_length_mismatch(sqlite_backend):
    with pytest.raises(ScanError):
        sqlite_backend.scan_row([ColumnType("id", "INTEGER")], (1, 2))


def test_insert_through_backend(sqlite_backend):
    descriptor = ResourceDescriptor("invoice", "invoices")
    sql = sqlite_backend.render_for("CreateSingle", descriptor, ["number", "total"])
    result = sqlite_backend.transact_directly(ExecutionContext(), sql, "INV-1", 10.5)
    assert result.last_insert_id == 1
    with sqlite_backend.begin() as tx:
        within = sqlite_backend.transact_within_tx(ExecutionContext(), tx, sql, "INV-2", 3.0)
    assert within.last_insert_id == 2
    rows = sqlite_backend.adapter.fetch_all(
        ExecutionContext(), sqlite_backend.format("GetSingleAsOption", "number", "invoices"), (2,)
    )
    assert rows == [(2, "INV-2")]


def test_delete_single(sqlite_backend):
    descriptor = ResourceDescriptor("invoice", "invoices")
    insert = sqlite_backend.render_for("CreateSingle", descriptor, ["number"])
    created = sqlite_backend.transact_directly(ExecutionContext(), insert, "INV-9")
    cursor = sqlite_backend.adapter.execute(
        ExecutionContext(), sqlite_backend.format("DeleteSingle", "invoices"), (created.last_insert_id,)
    )
    assert cursor.rowcount == 1
