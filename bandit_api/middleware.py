"""Request logging middleware."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from bandit_api.config import settings
from bandit_api.logging_config import log_request, log_error

# Polled by load balancers and browsers; logging them is noise
UNLOGGED_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def get_client_ip(request: Request) -> str:
    """
    Client IP used for logging and rate limiting.

    The first X-Forwarded-For hop is used only when `trust_forwarded_for`
    is set; otherwise the header is caller-controlled and ignored.
    """
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and metadata.

    Logs:
    - Method, path, status code
    - Duration in milliseconds
    - Client IP
    - User agent
    - Request ID (taken from X-Request-ID, or generated)

    Every response carries X-Request-ID so callers can correlate a
    selection with the outcome they later record.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()

        client_ip = get_client_ip(request)
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        user_agent = request.headers.get("User-Agent", "")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000

            log_error(
                message=f"Request failed: {str(e)}",
                error_type=type(e).__name__,
                method=request.method,
                path=request.url.path,
                duration_ms=duration_ms,
                client_ip=client_ip,
                request_id=request_id,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_ip=client_ip,
            request_id=request_id,
            user_agent=user_agent[:100],
            query_params=str(request.query_params) if request.query_params else None,
        )

        response.headers["X-Request-ID"] = request_id
        return response
