"""Business logic services for the bandit API."""

from bandit_api.services.experiment import ExperimentService
from bandit_api.services.sampling import sample_beta, sample_gamma
from bandit_api.services.selection import SelectionService, ThompsonSamplingEngine

__all__ = [
    "ExperimentService",
    "SelectionService",
    "ThompsonSamplingEngine",
    "sample_beta",
    "sample_gamma",
]
