"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from ..core.nullable import NullableValue
from ..query.catalog import FormatQuery, QueryCatalog
from ..query.templates import relation_templates
from .base import DialectCapabilities, TypeMap

SQLITE_TYPES = TypeMap(
    text=("TEXT", "CHAR", "VARCHAR", "NCHAR", "NVARCHAR", "CLOB", "BLOB"),
    integer=("INTEGER", "INT", "TINYINT", "SMALLINT", "MEDIUMINT", "BIGINT"),
    floating=("REAL", "DOUBLE", "DOUBLE PRECISION", "FLOAT", "NUMERIC", "DECIMAL"),
    temporal=("DATE", "DATETIME", "TIMESTAMP", "TIME"),
    boolean=("BOOLEAN", "BOOL"),
)


class SQLiteDialect:
    """
    SQLite dialect using numbered ``?n`` placeholders and native ``lastrowid``.
    """

    name: Final[str] = "sqlite"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=False,
        numbered_placeholders=True,
    )

    def __init__(self) -> None:
        self.catalog = QueryCatalog(
            self.name,
            {
                "GetSingleAsOption": FormatQuery("SELECT id, {} FROM {} WHERE id = ?1"),
                "GetCollection": FormatQuery("SELECT * FROM {}"),
                "GetCollectionAsOptions": FormatQuery("SELECT id, {} FROM {}"),
                "GetCollectionAsOptionsFilterable": FormatQuery(
                    "SELECT id, {} FROM {} WHERE CAST({} AS TEXT) LIKE ?1"
                ),
                "GetTableSchema": FormatQuery("SELECT * FROM {} LIMIT 1"),
                "DeleteSingle": FormatQuery("DELETE FROM {} WHERE id = ?1"),
                "DescribeTable": FormatQuery("SELECT name, type FROM pragma_table_info(?1) ORDER BY cid"),
                **relation_templates(returning_id=False),
            },
            placeholder=self.placeholder,
        )

    def placeholder(self, position: int) -> str:
        return f"?{position}"

    def convert_type(self, type_name: str) -> NullableValue:
        return SQLITE_TYPES.convert(type_name)