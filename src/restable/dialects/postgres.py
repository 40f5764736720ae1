"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from ..core.nullable import NullableValue
from ..query.catalog import FormatQuery, QueryCatalog
from ..query.templates import relation_templates
from .base import DialectCapabilities, TypeMap

POSTGRES_TYPES = TypeMap(
    text=("CHAR", "BPCHAR", "VARCHAR", "TEXT", "BYTEA"),
    integer=("INT2", "INT4", "INT8"),
    floating=("NUMERIC", "MONEY", "FLOAT4", "FLOAT8"),
    temporal=("TIMESTAMP", "TIMESTAMPTZ", "DATE", "TIME", "TIMETZ"),
    boolean=("BOOL",),
)


class PostgresDialect:
    """
    PostgreSQL dialect using numbered ``$n`` placeholders and ``RETURNING id`` on insert.
    """

    name: Final[str] = "postgresql"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=True,
        numbered_placeholders=True,
    )

    def __init__(self) -> None:
        self.catalog = QueryCatalog(
            self.name,
            {
                "GetSingleAsOption": FormatQuery("SELECT id, {} FROM {} WHERE id = $1"),
                "GetCollection": FormatQuery("SELECT * FROM {}"),
                "GetCollectionAsOptions": FormatQuery("SELECT id, {} FROM {}"),
                "GetCollectionAsOptionsFilterable": FormatQuery(
                    "SELECT id, {} FROM {} WHERE CAST ({} AS TEXT) LIKE $1"
                ),
                "GetTableSchema": FormatQuery("SELECT * FROM {} LIMIT 1"),
                "DeleteSingle": FormatQuery("DELETE FROM {} WHERE id = $1"),
                "DescribeTable": FormatQuery(
                    "SELECT column_name, udt_name FROM information_schema.columns"
                    " WHERE table_schema = current_schema() AND table_name = $1"
                    " ORDER BY ordinal_position"
                ),
                **relation_templates(returning_id=True),
            },
            placeholder=self.placeholder,
        )

    def placeholder(self, position: int) -> str:
        return f"${position}"

    def convert_type(self, type_name: str) -> NullableValue:
        return POSTGRES_TYPES.convert(type_name)