import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from studyhub.utils.logging import log_error, log_request_end, log_request_start

_QUIET_PATHS = {"/docs", "/redoc", "/openapi.json"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with timing and expose the duration as X-Response-Time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        user_id = request.headers.get("x-user-id")
        client_ip = request.client.host if request.client else "unknown"
        request_info = log_request_start(request.method, request.url.path, client_ip, user_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log_error(e, request_info["endpoint"], user_id)
            log_request_end(request_info, duration_ms, 500)
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_request_end(request_info, duration_ms, response.status_code)
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
