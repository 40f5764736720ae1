"""
Exception hierarchy shared by the adapter, query and web layers.
"""

from __future__ import annotations


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


class ExecutionCancelledError(AdapterExecutionError):
    """Raised when the execution context was cancelled or its deadline passed."""


class ScanError(AdapterExecutionError):
    """Raised when a returned row or value cannot be scanned into its destination."""


class AdapterTransactionError(AdapterError):
    """Raised when transaction operations fail."""


class TemplateConfigurationError(RuntimeError):
    """
    A query catalog entry is broken: unknown operation, wrong argument count,
    or a template referencing fields the render context does not have.
    """


class ConfigurationError(ValueError):
    """Raised when resource descriptors cannot be loaded."""
