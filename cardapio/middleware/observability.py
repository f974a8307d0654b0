from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from cardapio.core.metrics import request_metrics
from cardapio.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.caller = None
        set_request_context(request_id=request_id)

        status_code = 500
        method = request.method
        response = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            user_id = _extract_user_id(request)
            route = _route_template(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

            set_request_context(user_id=user_id)
            request_metrics.observe(route=route, method=method, status_code=status_code, duration_ms=duration_ms)

            logger.info(
                "request completed",
                extra={
                    "endpoint": request.url.path,
                    "route": route,
                    "method": method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if response is not None:
                response.headers[REQUEST_ID_HEADER] = request_id

            clear_request_context()


def _route_template(request: Request) -> str | None:
    # "/api/orders/{order_id}" em vez do id de cada pedido
    route = request.scope.get("route")
    return getattr(route, "path", None)


def _extract_user_id(request: Request) -> str | None:
    caller = getattr(request.state, "caller", None)
    if caller is None:
        return None
    return str(caller.user_id)
