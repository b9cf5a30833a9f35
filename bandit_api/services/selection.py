"""Thompson Sampling arm selection and outcome recording."""

import math
import time
from typing import Optional, Sequence

import numpy as np
from scipy import stats

from bandit_api.config import settings
from bandit_api.exceptions import InvalidInputError, NotFoundError
from bandit_api.logging_config import log_algorithm, log_outcome
from bandit_api.repositories import Arm, ArmRegistry, get_registry
from bandit_api.services.sampling import get_generator, sample_beta


class ThompsonSamplingEngine:
    """
    Thompson Sampling over Beta-Bernoulli posteriors.

    Uses the conjugate model:
    - Prior: Beta(α₀, β₀), α₀ = β₀ = 1 by default (uniform)
    - Likelihood: Bernoulli (success or failure)
    - Posterior: Beta(α₀ + successes, β₀ + failures)

    A never-tried arm therefore samples from Beta(1, 1), the uniform
    distribution, and competes on equal footing with every other new arm.
    """

    def __init__(
        self,
        prior_alpha: float | None = None,
        prior_beta: float | None = None,
        n_samples: int | None = None,
    ):
        """
        Initialize the Thompson Sampling engine.

        Args:
            prior_alpha: Prior α parameter (default from settings)
            prior_beta: Prior β parameter (default from settings)
            n_samples: Monte Carlo draws for win probabilities (default from settings)
        """
        self.prior_alpha = settings.prior_alpha if prior_alpha is None else prior_alpha
        self.prior_beta = settings.prior_beta if prior_beta is None else prior_beta
        self.n_samples = settings.win_probability_samples if n_samples is None else n_samples

    def posterior(self, arm: Arm) -> tuple[float, float]:
        """Beta parameters of an arm's posterior."""
        return arm.successes + self.prior_alpha, arm.failures + self.prior_beta

    def select_arm(
        self,
        arms: Sequence[Arm],
        rng: Optional[np.random.Generator] = None,
    ) -> Arm:
        """
        Pick the arm with the highest posterior draw.

        Arms are scanned in order and a later arm replaces the current best
        only on a strictly greater draw, so on a tie the earliest arm wins.

        Args:
            arms: Snapshot of the experiment's arms (not mutated)
            rng: Generator to draw from (default: the thread's generator)

        Returns:
            The selected arm

        Raises:
            InvalidInputError: If arms is empty
        """
        if not arms:
            raise InvalidInputError("Cannot select from an empty set of arms")

        selected = None
        max_sample = -math.inf

        for arm in arms:
            alpha, beta = self.posterior(arm)
            sample = sample_beta(alpha, beta, rng)
            if sample > max_sample:
                max_sample = sample
                selected = arm

        return selected

    def estimate_win_probabilities(
        self,
        arms: Sequence[Arm],
        rng: Optional[np.random.Generator] = None,
    ) -> dict[str, float]:
        """
        Estimate each arm's probability of producing the highest draw.

        For each Monte Carlo simulation:
        1. Sample θ from every arm's posterior
        2. The arm with the highest θ "wins" (first arm on ties)
        3. Probability = share of simulations won

        Returns:
            Dict mapping arm id to probability in [0, 1]
        """
        if not arms:
            return {}

        # No evidence at all: every posterior is the prior
        if all(arm.trials == 0 for arm in arms):
            uniform = 1.0 / len(arms)
            return {arm.id: uniform for arm in arms}

        if rng is None:
            rng = get_generator()

        samples = np.vstack([
            stats.beta.rvs(*self.posterior(arm), size=self.n_samples, random_state=rng)
            for arm in arms
        ])
        wins = np.bincount(np.argmax(samples, axis=0), minlength=len(arms))

        return {
            arm.id: float(count) / self.n_samples
            for arm, count in zip(arms, wins)
        }

    def credible_interval(self, arm: Arm, level: float = 0.95) -> tuple[float, float]:
        """Equal-tailed credible interval of an arm's success probability."""
        tail = (1.0 - level) / 2
        lower, upper = stats.beta.ppf([tail, 1.0 - tail], *self.posterior(arm))
        return float(lower), float(upper)


class SelectionService:
    """The engine's two external operations: pick an arm, record an outcome."""

    def __init__(
        self,
        registry: ArmRegistry | None = None,
        engine: ThompsonSamplingEngine | None = None,
    ):
        self.registry = registry or get_registry()
        self.engine = engine or ThompsonSamplingEngine()

    def get_next_arm(self, experiment_id: str) -> Arm:
        """
        Select the arm to present next for an experiment.

        Args:
            experiment_id: Experiment UUID

        Returns:
            The selected arm, with the counters it was selected on

        Raises:
            NotFoundError: If the experiment does not exist
            StoreFailureError: If the registry could not be read
        """
        start_time = time.perf_counter()

        arms = self.registry.get_arms(experiment_id)
        selected = self.engine.select_arm(arms)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_algorithm(
            algorithm="thompson_sampling",
            experiment_id=experiment_id,
            duration_ms=duration_ms,
            num_arms=len(arms),
            selected_arm_id=selected.id,
            total_trials=sum(arm.trials for arm in arms),
        )

        return selected

    def record_outcome(
        self,
        arm_id: str,
        success: bool,
        experiment_id: str | None = None,
    ) -> tuple[int, int]:
        """
        Record one success or failure for an arm.

        Args:
            arm_id: Arm UUID
            success: Whether the presentation succeeded
            experiment_id: If given, the arm must belong to this experiment

        Returns:
            Tuple of (successes, failures) right after the increment

        Raises:
            NotFoundError: If the arm does not exist, or is not part of
                experiment_id (nothing is recorded)
            StoreFailureError: If the registry could not apply the increment
        """
        if experiment_id is not None:
            arm = self.registry.get_arm(arm_id)
            if arm is None or arm.experiment_id != experiment_id:
                raise NotFoundError(
                    f"Arm '{arm_id}' not found in experiment '{experiment_id}'"
                )

        successes, failures = self.registry.record_outcome(arm_id, success)

        log_outcome(
            arm_id=arm_id,
            success=success,
            successes=successes,
            failures=failures,
        )

        return successes, failures
