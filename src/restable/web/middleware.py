from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..utils.logging import correlation_scope

REQUEST_ID_HEADER = "X-Request-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        with correlation_scope(request.headers.get(REQUEST_ID_HEADER)) as rid:
            request.state.request_id = rid
            response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
