"""
Dialect strategy registry.
"""

from .base import Dialect, DialectCapabilities, TypeMap, canonical_type_name
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

__all__ = [
    "Dialect",
    "DialectCapabilities",
    "TypeMap",
    "canonical_type_name",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
]
