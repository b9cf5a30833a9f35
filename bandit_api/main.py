"""Thompson Sampling Bandit API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bandit_api.routers import health_router, experiments_router
from bandit_api.config import settings
from bandit_api.exceptions import StoreFailureError
from bandit_api.logging_config import log_error, logger
from bandit_api.rate_limit import RateLimitMiddleware
from bandit_api.middleware import RequestLoggingMiddleware
from bandit_api.repositories import get_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the configured registry before serving."""
    get_registry().initialize()
    logger.info(
        "Registry ready",
        extra={"type": "startup", "storage_backend": settings.storage_backend},
    )
    yield


# API metadata for documentation
app = FastAPI(
    title="Thompson Sampling Bandit API",
    description="""
## Overview

API for choosing which arm (variant) of an experiment to present next, using
Bayesian **Thompson Sampling**.

## Algorithm

Each arm keeps a success and a failure counter:

- **Prior**: Beta(1, 1), uniform over the success probability
- **Posterior**: Beta(1 + successes, 1 + failures)
- **Selection**: draw once from every arm's posterior, return the arm with the
  highest draw

Better arms get presented more often while uncertain arms keep being explored.

## Workflow

1. **Create Experiment**: Define the arms (by list or by count)
2. **Get Next Arm**: Ask which arm to present
3. **Record Outcome**: Report whether the presentation succeeded

## Rate Limits

Per-minute limits vary by endpoint. Response headers include:
- `X-RateLimit-Limit`: Maximum requests allowed
- `X-RateLimit-Remaining`: Requests remaining in window
- `X-RateLimit-Reset`: Seconds until window resets
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Add middlewares (order matters - last added is outermost)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(StoreFailureError)
async def store_failure_handler(request: Request, exc: StoreFailureError):
    """Report registry failures without retrying them."""
    log_error(
        message=f"Store failure: {str(exc)}",
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=503,
        content={"detail": "Statistics store unavailable", "type": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    log_error(
        message=f"Unhandled exception: {str(exc)}",
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__},
    )


app.include_router(health_router)
app.include_router(experiments_router)


@app.get("/", include_in_schema=False)
async def root():
    """Point to documentation."""
    return {
        "message": "Thompson Sampling Bandit API",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bandit_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
