"""
Backend bundle selecting one dialect and its adapter at startup.

A ``Backend`` groups what differs per database (query catalog, type
conversion, generated-id retrieval) behind one object so handlers never
branch on the dialect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Sequence

from .adapters.base import ConnectionConfig, DatabaseAdapter, ExecutionContext, GeneratedIdResult
from .adapters.mysql import MySQLAdapter
from .adapters.postgres import PostgresAdapter
from .adapters.sqlite import SQLiteAdapter
from .core.errors import AdapterConfigurationError, ScanError
from .core.nullable import NullableValue
from .dialects.base import Dialect
from .persistence.transaction import Transaction
from .query.context import RelationContext
from .security.dsns import SCHEME_ALIASES, parse_dsn
from .utils import get_logger

if TYPE_CHECKING:
    from .config import ResourceDescriptor

AdapterFactory = Callable[[], DatabaseAdapter]

_BACKEND_REGISTRY: dict[str, AdapterFactory] = {}

logger = get_logger("backend")


def register_backend(name: str, factory: AdapterFactory) -> None:
    _BACKEND_REGISTRY[name.lower()] = factory


def registered_backends() -> tuple[str, ...]:
    return tuple(sorted(_BACKEND_REGISTRY))


class ColumnType(NamedTuple):
    name: str
    type_name: str


@dataclass(frozen=True)
class Backend:
    dialect: Dialect
    adapter: DatabaseAdapter

    @property
    def name(self) -> str:
        return self.dialect.name

    # Query rendering -----------------------------------------------------
    def format(self, operation: str, *args: Any) -> str:
        return self.dialect.catalog.format(operation, *args)

    def render(self, operation: str, context: RelationContext) -> str:
        return self.dialect.catalog.render(operation, context)

    def render_for(
        self, operation: str, descriptor: "ResourceDescriptor", column_names: Sequence[str] = ()
    ) -> str:
        return self.render(operation, descriptor.relation_context(column_names))

    # Type conversion -----------------------------------------------------
    def convert(self, type_name: str) -> NullableValue:
        return self.dialect.convert_type(type_name)

    def scan_row(self, columns: Sequence[ColumnType], row: Sequence[Any]) -> dict[str, Any]:
        """
        Scan one result row into fresh nullable containers and return plain values.
        """

        if len(columns) != len(row):
            raise ScanError(f"Row has {len(row)} values for {len(columns)} columns")
        return {
            column.name: self.convert(column.type_name).scan(raw).value
            for column, raw in zip(columns, row)
        }

    def describe_table(self, ctx: ExecutionContext, table_name: str) -> list[ColumnType]:
        rows = self.adapter.fetch_all(ctx, self.format("DescribeTable"), (table_name,))
        return [ColumnType(str(name), str(type_name or "")) for name, type_name in rows]

    # Execution -----------------------------------------------------------
    def begin(self) -> Transaction:
        return Transaction(self.adapter).begin()

    def transact_directly(self, ctx: ExecutionContext, sql: str, *args: Any) -> GeneratedIdResult:
        return self.adapter.transact_directly(ctx, sql, *args)

    def transact_within_tx(
        self, ctx: ExecutionContext, tx: Transaction, sql: str, *args: Any
    ) -> GeneratedIdResult:
        return self.adapter.transact_within_tx(ctx, tx, sql, *args)

    def close(self) -> None:
        self.adapter.close()


def get_backend(name: str) -> Backend:
    try:
        factory = _BACKEND_REGISTRY[SCHEME_ALIASES.get(name.lower(), name.lower())]
    except KeyError:
        raise AdapterConfigurationError(
            f"No backend registered for '{name}' (known: {', '.join(registered_backends())})"
        ) from None
    adapter = factory()
    return Backend(dialect=adapter.dialect, adapter=adapter)


def backend_for_dsn(dsn: str, **kwargs: Any) -> Backend:
    """
    Pick the backend from the DSN scheme and connect it.
    """

    backend = get_backend(parse_dsn(dsn).backend_name)
    config = ConnectionConfig.from_dsn(dsn, **kwargs)
    backend.adapter.connect(config)
    logger.info("Using %s backend for %s", backend.name, config.redacted_dsn())
    return backend


register_backend("postgresql", PostgresAdapter)
register_backend("mysql", MySQLAdapter)
register_backend("sqlite", SQLiteAdapter)
