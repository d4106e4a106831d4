# aura_checkout/common/middlewares.py
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from aura_checkout.common.logging_setup import get_correlation_id, set_correlation_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        # reaproveita X-Request-Id do cliente, senão gera um novo
        set_correlation_id(request.headers.get("X-Request-Id") or str(uuid.uuid4()))
        response = await call_next(request)
        response.headers["X-Request-Id"] = get_correlation_id()
        return response


class PreflightVazioMiddleware(BaseHTTPMiddleware):
    """Preflight CORS responde 200 sem corpo, mantendo os headers Access-Control-*."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        if request.method != "OPTIONS" or "access-control-request-method" not in request.headers:
            return response
        async for _ in response.body_iterator:  # type: ignore[attr-defined]
            pass
        headers = {
            k: v for k, v in response.headers.items() if k.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=response.status_code, headers=headers)
