"""
restable public package initialization.

Relational tables as generic REST resources: per-dialect query catalogs,
typed row scanning, generated-id retrieval and the route guard.
"""

from .adapters import ConnectionConfig, ExecutionContext, GeneratedIdResult  # noqa: F401
from .backend import Backend, ColumnType, backend_for_dsn, get_backend, register_backend  # noqa: F401
from .config import ResourceConfig, ResourceDescriptor  # noqa: F401
from .core import (  # noqa: F401
    AdapterError,
    ConfigurationError,
    ExecutionCancelledError,
    NullableValue,
    ScanError,
    TemplateConfigurationError,
)
from .persistence import Transaction  # noqa: F401
from .query import RelationContext, Relationship  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "AdapterError",
    "Backend",
    "ColumnType",
    "ConfigurationError",
    "ConnectionConfig",
    "ExecutionCancelledError",
    "ExecutionContext",
    "GeneratedIdResult",
    "NullableValue",
    "RelationContext",
    "Relationship",
    "ResourceConfig",
    "ResourceDescriptor",
    "ScanError",
    "TemplateConfigurationError",
    "Transaction",
    "backend_for_dsn",
    "get_backend",
    "register_backend",
]
