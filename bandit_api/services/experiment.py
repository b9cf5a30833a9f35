"""Business logic for experiment operations."""

from datetime import datetime, timezone
from typing import Optional

from bandit_api.exceptions import ConflictError, NotFoundError
from bandit_api.models.experiment import ArmResponse, ExperimentCreate, ExperimentResponse
from bandit_api.models.stats import ArmStats, ConfidenceInterval, ExperimentStatsResponse
from bandit_api.repositories import Arm, ArmRegistry, Experiment, get_registry
from bandit_api.services.selection import ThompsonSamplingEngine


def to_arm_response(arm: Arm) -> ArmResponse:
    return ArmResponse(
        id=arm.id,
        experiment_id=arm.experiment_id,
        name=arm.name,
        description=arm.description,
        successes=arm.successes,
        failures=arm.failures,
        created_at=arm.created_at,
        updated_at=arm.updated_at,
    )


def to_experiment_response(experiment: Experiment) -> ExperimentResponse:
    return ExperimentResponse(
        id=experiment.id,
        name=experiment.name,
        description=experiment.description,
        arms=[to_arm_response(arm) for arm in experiment.arms],
        created_at=experiment.created_at,
        updated_at=experiment.updated_at,
    )


class ExperimentService:
    """Service for experiment business logic."""

    def __init__(
        self,
        registry: ArmRegistry | None = None,
        engine: ThompsonSamplingEngine | None = None,
    ):
        self.registry = registry or get_registry()
        self.engine = engine or ThompsonSamplingEngine()

    def create_experiment(self, data: ExperimentCreate) -> ExperimentResponse:
        """
        Create a new experiment with its arms, all starting at (0, 0).

        Args:
            data: Experiment creation data

        Returns:
            Created experiment response

        Raises:
            ConflictError: If experiment name already exists
        """
        if self.registry.get_experiment_by_name(data.name):
            raise ConflictError(f"Experiment with name '{data.name}' already exists")

        arms = [{"name": a.name, "description": a.description} for a in data.arms]
        experiment = self.registry.create_experiment(
            name=data.name,
            description=data.description,
            arms=arms,
        )
        return to_experiment_response(experiment)

    def get_experiment(self, experiment_id: str) -> Optional[ExperimentResponse]:
        """Get experiment by ID, or None if not found."""
        experiment = self.registry.get_experiment(experiment_id)
        if not experiment:
            return None
        return to_experiment_response(experiment)

    def list_experiments(self) -> list[ExperimentResponse]:
        """All experiments, newest first."""
        return [to_experiment_response(e) for e in self.registry.list_experiments()]

    def get_arm_stats(self, experiment_id: str) -> ExperimentStatsResponse:
        """
        Summarize every arm's observed and posterior statistics.

        Args:
            experiment_id: Experiment UUID

        Returns:
            Per-arm statistics with win probabilities

        Raises:
            NotFoundError: If the experiment does not exist
        """
        experiment = self.registry.get_experiment(experiment_id)
        if not experiment:
            raise NotFoundError(f"Experiment '{experiment_id}' not found")

        arms = list(experiment.arms)
        win_probabilities = self.engine.estimate_win_probabilities(arms)

        arm_stats = []
        for arm in arms:
            alpha, beta = self.engine.posterior(arm)
            lower, upper = self.engine.credible_interval(arm)
            arm_stats.append(
                ArmStats(
                    arm_id=arm.id,
                    name=arm.name,
                    description=arm.description,
                    successes=arm.successes,
                    failures=arm.failures,
                    trials=arm.trials,
                    success_rate=round(arm.successes / arm.trials, 6) if arm.trials else 0.0,
                    posterior_mean=round(alpha / (alpha + beta), 6),
                    credible_interval=ConfidenceInterval(
                        lower=round(lower, 6), upper=round(upper, 6)
                    ),
                    probability_best=round(win_probabilities[arm.id], 4),
                )
            )

        return ExperimentStatsResponse(
            experiment_id=experiment.id,
            experiment_name=experiment.name,
            computed_at=datetime.now(timezone.utc),
            arms=arm_stats,
        )
