"""
HTTP layer: route guard and application factory.
"""

from .app import create_app
from .guard import (
    ResourceNotFoundError,
    ResponseMessage,
    RouteGuard,
    guarded_router,
    install_error_handlers,
    resolve_table,
)
from .middleware import REQUEST_ID_HEADER, CorrelationIdMiddleware

__all__ = [
    "CorrelationIdMiddleware",
    "REQUEST_ID_HEADER",
    "ResourceNotFoundError",
    "ResponseMessage",
    "RouteGuard",
    "create_app",
    "guarded_router",
    "install_error_handlers",
    "resolve_table",
]
