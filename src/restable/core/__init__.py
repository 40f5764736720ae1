"""
Core value types and errors.
"""

from .errors import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConfigurationError,
    ExecutionCancelledError,
    ScanError,
    TemplateConfigurationError,
)
from .nullable import (
    NullableValue,
    NullBool,
    NullFloat64,
    NullInt64,
    NullString,
    NullTime,
)

__all__ = [
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "ConfigurationError",
    "ExecutionCancelledError",
    "ScanError",
    "TemplateConfigurationError",
    "NullableValue",
    "NullBool",
    "NullFloat64",
    "NullInt64",
    "NullString",
    "NullTime",
]
