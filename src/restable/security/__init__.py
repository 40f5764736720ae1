"""Security helpers for restable."""

from .dsns import DSNConfig, parse_dsn
from .redaction import bound_columns, redact_params, redact_query_params

__all__ = ["DSNConfig", "bound_columns", "parse_dsn", "redact_params", "redact_query_params"]
