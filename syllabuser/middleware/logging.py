"""Request logging middleware."""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with a request id echoed in ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Honour an id forwarded by the proxy
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id

        start_time = time.perf_counter()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.debug(
            f"{request.method} {request.url.path} started",
            extra={**context, "client_ip": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed",
                extra={
                    **context,
                    "error": str(e),
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms} ms)",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        response.headers["X-Request-ID"] = request_id
        return response
