"""
Application factory wiring the route guard around resource routers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, FastAPI

from ..backend import Backend
from ..config import ResourceConfig
from .guard import install_error_handlers
from .middleware import CorrelationIdMiddleware


def create_app(
    config: ResourceConfig,
    *routers: APIRouter,
    backend: Backend | None = None,
    **kwargs: Any,
) -> FastAPI:
    """
    Build the FastAPI app; ``config`` and ``backend`` are exposed on ``app.state``.

    Routers should come from ``guarded_router`` so ``{table}`` is checked
    before their handlers run.
    """

    app = FastAPI(**kwargs)
    app.state.resources = config
    app.state.backend = backend
    app.add_middleware(CorrelationIdMiddleware)
    install_error_handlers(app)
    for router in routers:
        app.include_router(router)
    return app
