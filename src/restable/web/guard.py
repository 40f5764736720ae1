"""
Route guard rejecting requests whose ``{table}`` path variable is not a configured resource.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from starlette.responses import PlainTextResponse

from ..config import ResourceConfig
from ..utils import get_logger

TABLE_PATH_PARAM = "table"

logger = get_logger("web.guard")


class ResourceNotFoundError(LookupError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"The requested handler '{key}' does not exist")


@dataclass(frozen=True)
class ResponseMessage:
    code: int
    description: str

    def to_text(self) -> str:
        return json.dumps({"status": {"code": self.code, "description": self.description}})


def resolve_table(config: ResourceConfig, key: str) -> str:
    table_name = config.table_for(key)
    if table_name is None:
        raise ResourceNotFoundError(key)
    return table_name


class RouteGuard:
    """
    FastAPI dependency run before every guarded handler.

    Routes without a ``{table}`` variable pass through untouched. Otherwise
    the value must equal a descriptor key exactly; the matching descriptor
    and table name are left on ``request.state`` for the handler.
    """

    def __init__(self, config: ResourceConfig, *, path_param: str = TABLE_PATH_PARAM) -> None:
        self.config = config
        self.path_param = path_param

    async def __call__(self, request: Request) -> None:
        key = request.path_params.get(self.path_param)
        if not key:
            return
        try:
            table_name = resolve_table(self.config, key)
        except ResourceNotFoundError:
            logger.info("Rejecting %s %s: unknown resource '%s'", request.method, request.url.path, key)
            raise
        request.state.resource = self.config.get(key)
        request.state.table_name = table_name


async def resource_not_found_handler(request: Request, exc: Any) -> PlainTextResponse:
    message = ResponseMessage(code=404, description=str(exc))
    return PlainTextResponse(message.to_text() + "\n", status_code=404)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ResourceNotFoundError, resource_not_found_handler)


def guarded_router(config: ResourceConfig, **kwargs: Any) -> APIRouter:
    """
    ``APIRouter`` whose every route runs ``RouteGuard`` first.
    """

    dependencies = list(kwargs.pop("dependencies", None) or [])
    dependencies.insert(0, Depends(RouteGuard(config)))
    return APIRouter(dependencies=dependencies, **kwargs)
