"""Experiment registries for the bandit API."""

from functools import lru_cache

from bandit_api.config import settings
from bandit_api.repositories.experiment import SnowflakeArmRegistry
from bandit_api.repositories.registry import (
    Arm,
    ArmRegistry,
    ArmStatistics,
    Experiment,
    InMemoryArmRegistry,
)


@lru_cache(maxsize=1)
def get_registry() -> ArmRegistry:
    """Return the process-wide registry for the configured backend."""
    if settings.storage_backend == "snowflake":
        return SnowflakeArmRegistry()
    return InMemoryArmRegistry()


__all__ = [
    "Arm",
    "ArmRegistry",
    "ArmStatistics",
    "Experiment",
    "InMemoryArmRegistry",
    "SnowflakeArmRegistry",
    "get_registry",
]
