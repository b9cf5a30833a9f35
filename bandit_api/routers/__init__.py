"""API routers for the bandit API."""

from bandit_api.routers.health import router as health_router
from bandit_api.routers.experiments import router as experiments_router

__all__ = [
    "health_router",
    "experiments_router",
]
