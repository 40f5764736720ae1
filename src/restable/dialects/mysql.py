"""
MySQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from ..core.nullable import NullableValue
from ..query.catalog import FormatQuery, QueryCatalog
from ..query.templates import relation_templates
from .base import DialectCapabilities, TypeMap

MYSQL_TYPES = TypeMap(
    text=(
        "CHAR",
        "VARCHAR",
        "TINYTEXT",
        "TEXT",
        "MEDIUMTEXT",
        "LONGTEXT",
        "ENUM",
        "SET",
        "BLOB",
        "JSON",
    ),
    integer=("TINYINT", "SMALLINT", "MEDIUMINT", "INT", "INTEGER", "BIGINT", "YEAR"),
    floating=("DECIMAL", "NUMERIC", "FLOAT", "DOUBLE", "REAL"),
    temporal=("DATE", "DATETIME", "TIMESTAMP", "TIME"),
    boolean=("BOOL", "BOOLEAN"),
)


class MySQLDialect:
    """
    MySQL dialect using ``%s`` placeholders; identifiers come from ``lastrowid``.
    """

    name: Final[str] = "mysql"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=False,
        numbered_placeholders=False,
    )

    def __init__(self) -> None:
        self.catalog = QueryCatalog(
            self.name,
            {
                "GetSingleAsOption": FormatQuery("SELECT id, {} FROM {} WHERE id = %s"),
                "GetCollection": FormatQuery("SELECT * FROM {}"),
                "GetCollectionAsOptions": FormatQuery("SELECT id, {} FROM {}"),
                "GetCollectionAsOptionsFilterable": FormatQuery(
                    "SELECT id, {} FROM {} WHERE CAST({} AS CHAR) LIKE %s"
                ),
                "GetTableSchema": FormatQuery("SELECT * FROM {} LIMIT 1"),
                "DeleteSingle": FormatQuery("DELETE FROM {} WHERE id = %s"),
                "DescribeTable": FormatQuery(
                    "SELECT column_name, data_type FROM information_schema.columns"
                    " WHERE table_schema = DATABASE() AND table_name = %s"
                    " ORDER BY ordinal_position"
                ),
                **relation_templates(returning_id=False),
            },
            placeholder=self.placeholder,
        )

    def placeholder(self, position: int) -> str:
        return "%s"

    def convert_type(self, type_name: str) -> NullableValue:
        return MYSQL_TYPES.convert(type_name)