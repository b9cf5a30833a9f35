"""Rate limiting middleware and utilities."""

import threading
import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from bandit_api.config import settings
from bandit_api.logging_config import logger
from bandit_api.middleware import get_client_ip


class RateLimiter:
    """
    In-memory sliding-window rate limiter, safe to share between threads.

    State lives in this process only; each worker process limits on its own.
    Keys whose window has emptied are dropped, and every `sweep_interval`
    calls all keys are checked, so clients that never come back do not
    accumulate.
    """

    def __init__(self, sweep_interval: int = 1000):
        # Structure: {key: [timestamp, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._windows: dict[str, int] = {}
        self._sweep_interval = sweep_interval
        self._calls = 0
        self._lock = threading.Lock()

    def _clean_old_requests(self, key: str, now: float, window_seconds: int) -> None:
        """Remove requests outside the current window, and the key if none remain."""
        cutoff = now - window_seconds
        timestamps = [ts for ts in self._requests.get(key, ()) if ts > cutoff]
        if timestamps:
            self._requests[key] = timestamps
        else:
            self._requests.pop(key, None)
            self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        for key in list(self._requests):
            self._clean_old_requests(key, now, self._windows.get(key, 0))

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int, int]:
        """
        Check if request is allowed under rate limit, and count it if so.

        Args:
            key: Unique identifier (IP, API key, etc)
            max_requests: Maximum requests allowed in window
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_allowed, remaining_requests, reset_seconds)
        """
        now = time.time()

        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_interval == 0:
                self._sweep(now)

            self._clean_old_requests(key, now, window_seconds)
            timestamps = self._requests[key]
            self._windows[key] = window_seconds

            if len(timestamps) >= max_requests:
                reset_seconds = max(int(min(timestamps) + window_seconds - now), 1)
                return False, 0, reset_seconds

            timestamps.append(now)
            return True, max_requests - len(timestamps), window_seconds

    def reset(self) -> None:
        """Forget every recorded request."""
        with self._lock:
            self._requests.clear()
            self._windows.clear()
            self._calls = 0


rate_limiter = RateLimiter()


# Rate limit configurations per endpoint
RATE_LIMITS = {
    "POST /experiments": {"max_requests": 10, "window_seconds": 60},
    "GET /experiments": {"max_requests": 60, "window_seconds": 60},
    "GET /experiments/{experiment_id}": {"max_requests": 120, "window_seconds": 60},
    "GET /experiments/{experiment_id}/arm": {"max_requests": 1000, "window_seconds": 60},
    "POST /experiments/{experiment_id}/arms/{arm_id}/result": {"max_requests": 1000, "window_seconds": 60},
    "GET /experiments/{experiment_id}/arms": {"max_requests": 60, "window_seconds": 60},
}

# Identifier segments follow these collection names in our paths
_ID_PLACEHOLDERS = {
    "experiments": "{experiment_id}",
    "arms": "{arm_id}",
}


def default_rate_limit() -> dict[str, int]:
    return {
        "max_requests": settings.rate_limit_default_max,
        "window_seconds": settings.rate_limit_default_window,
    }


def get_endpoint_pattern(request: Request) -> str:
    """Convert request to endpoint pattern for rate limit lookup.

    Any segment that directly follows a known collection name is an
    identifier, e.g. /experiments/abc/arms/def/result becomes
    /experiments/{experiment_id}/arms/{arm_id}/result.
    """
    parts = [part for part in request.url.path.strip("/").split("/") if part]

    normalized_parts = []
    for i, part in enumerate(parts):
        previous = parts[i - 1] if i > 0 else None
        normalized_parts.append(_ID_PLACEHOLDERS.get(previous, part))

    return f"{request.method} /" + "/".join(normalized_parts)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to apply rate limiting to all requests.

    Adds headers:
    - X-RateLimit-Limit: Maximum requests allowed
    - X-RateLimit-Remaining: Requests remaining in window
    - X-RateLimit-Reset: Seconds until window resets
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.rate_limit_enabled:
            return await call_next(request)

        # Skip rate limiting for health checks and docs
        if request.url.path in ["/health", "/docs", "/redoc", "/openapi.json", "/"]:
            return await call_next(request)

        endpoint_pattern = get_endpoint_pattern(request)
        config = RATE_LIMITS.get(endpoint_pattern) or default_rate_limit()

        key = get_client_ip(request)
        is_allowed, remaining, reset = rate_limiter.is_allowed(
            f"{key}:{endpoint_pattern}",
            config["max_requests"],
            config["window_seconds"],
        )

        if not is_allowed:
            logger.warning(
                f"Rate limit exceeded for {key}",
                extra={
                    "type": "rate_limit",
                    "key": key,
                    "endpoint": endpoint_pattern,
                    "limit": config["max_requests"],
                    "window_seconds": config["window_seconds"],
                },
            )
            return JSONResponse(
                status_code=429,
                content={
                    "detail": {
                        "error": "Rate limit exceeded",
                        "limit": config["max_requests"],
                        "window_seconds": config["window_seconds"],
                        "retry_after": reset,
                    }
                },
                headers={
                    "X-RateLimit-Limit": str(config["max_requests"]),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset),
                    "Retry-After": str(reset),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(config["max_requests"])
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset)

        return response
