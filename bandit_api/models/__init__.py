"""Pydantic models for the bandit API."""

from bandit_api.models.experiment import (
    ArmCreate,
    ArmResponse,
    ExperimentCreate,
    ExperimentResponse,
)
from bandit_api.models.outcome import OutcomeRequest, OutcomeResponse
from bandit_api.models.stats import ArmStats, ConfidenceInterval, ExperimentStatsResponse

__all__ = [
    "ArmCreate",
    "ArmResponse",
    "ExperimentCreate",
    "ExperimentResponse",
    "OutcomeRequest",
    "OutcomeResponse",
    "ArmStats",
    "ConfidenceInterval",
    "ExperimentStatsResponse",
]
