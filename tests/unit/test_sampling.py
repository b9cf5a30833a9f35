"""Unit tests for the Gamma and Beta samplers."""

import threading
from unittest.mock import patch

import numpy as np
import pytest

from bandit_api.exceptions import InvalidInputError
from bandit_api.services import sampling
from bandit_api.services.sampling import (
    DEGENERATE_BETA_FALLBACK,
    get_generator,
    sample_beta,
    sample_gamma,
)


class TestSampleGamma:
    """Tests for the Marsaglia-Tsang Gamma sampler."""

    @pytest.mark.parametrize("shape", [0.01, 0.3, 1.0, 2.5, 50.0])
    def test_samples_are_non_negative(self, shape, rng):
        """Every draw should be >= 0 for any positive shape."""
        draws = [sample_gamma(shape, rng) for _ in range(2000)]
        assert min(draws) >= 0

    @pytest.mark.parametrize("shape", [0.5, 1.0, 2.5, 10.0])
    def test_mean_matches_shape(self, shape, rng):
        """Gamma(k, 1) has mean k."""
        draws = np.array([sample_gamma(shape, rng) for _ in range(20000)])
        assert draws.mean() == pytest.approx(shape, rel=0.05)

    def test_variance_matches_shape(self, rng):
        """Gamma(k, 1) has variance k."""
        draws = np.array([sample_gamma(4.0, rng) for _ in range(20000)])
        assert draws.var() == pytest.approx(4.0, rel=0.1)

    @pytest.mark.parametrize("shape", [0, -1.0, float("nan")])
    def test_rejects_non_positive_shape(self, shape):
        """Non-positive or NaN shape is a contract violation."""
        with pytest.raises(InvalidInputError):
            sample_gamma(shape)

    def test_invalid_input_is_a_value_error(self):
        """Callers catching ValueError should also catch bad parameters."""
        with pytest.raises(ValueError, match="positive"):
            sample_gamma(-0.5)

    def test_small_shape_does_not_recurse(self, rng):
        """Shapes below 1 boost once instead of calling themselves."""
        with patch.object(sampling, "sample_gamma", wraps=sample_gamma) as spy:
            sampling.sample_gamma(0.2, rng)
            spy.assert_called_once()

    def test_same_seed_same_draws(self):
        """An explicit generator makes draws reproducible."""
        first = [sample_gamma(1.7, np.random.default_rng(7)) for _ in range(3)]
        second = [sample_gamma(1.7, np.random.default_rng(7)) for _ in range(3)]
        assert first == second


class TestSampleBeta:
    """Tests for the ratio-of-gammas Beta sampler."""

    @pytest.mark.parametrize(
        "alpha,beta",
        [(1, 1), (0.1, 0.1), (0.5, 3), (1, 101), (101, 1), (1000, 1000)],
    )
    def test_samples_stay_in_unit_interval(self, alpha, beta, rng):
        """No draw may fall outside [0, 1], over 10,000 draws."""
        draws = np.array([sample_beta(alpha, beta, rng) for _ in range(10000)])
        assert draws.min() >= 0.0
        assert draws.max() <= 1.0
        assert not np.isnan(draws).any()

    def test_uniform_prior_is_uniform(self, rng):
        """Beta(1, 1) draws should look uniform over [0, 1]."""
        draws = np.array([sample_beta(1, 1, rng) for _ in range(20000)])

        assert draws.mean() == pytest.approx(0.5, abs=0.01)

        # Ten equal bins should each hold ~2000 draws
        counts, _ = np.histogram(draws, bins=10, range=(0.0, 1.0))
        assert counts.min() > 1700
        assert counts.max() < 2300

    def test_mean_matches_posterior(self, rng):
        """Beta(a, b) has mean a / (a + b)."""
        draws = np.array([sample_beta(3, 7, rng) for _ in range(20000)])
        assert draws.mean() == pytest.approx(0.3, abs=0.01)

    @pytest.mark.parametrize("alpha,beta", [(0, 1), (1, 0), (-1, 2), (2, -0.5)])
    def test_rejects_non_positive_parameters(self, alpha, beta):
        """Non-positive alpha or beta is a contract violation."""
        with pytest.raises(InvalidInputError):
            sample_beta(alpha, beta)

    def test_both_gammas_zero_returns_midpoint(self):
        """A 0/0 draw must fall back to 0.5 instead of returning NaN."""
        with patch.object(sampling, "sample_gamma", return_value=0.0):
            result = sample_beta(0.01, 0.01)

        assert result == DEGENERATE_BETA_FALLBACK == 0.5

    def test_degenerate_draw_is_logged(self):
        """The 0/0 fallback should be visible in the logs."""
        with patch.object(sampling, "sample_gamma", return_value=0.0):
            with patch.object(sampling.logger, "warning") as mock_warning:
                sample_beta(0.01, 0.01)

        mock_warning.assert_called_once()
        assert mock_warning.call_args[1]["extra"]["type"] == "numeric_degeneracy"

    def test_one_zero_gamma_is_not_degenerate(self):
        """Only 0/0 is degenerate; 0/(0 + y) is a legitimate 0."""
        with patch.object(sampling, "sample_gamma", side_effect=[0.0, 2.0]):
            assert sample_beta(1, 1) == 0.0


class TestGenerator:
    """Tests for the per-thread random source."""

    def test_same_thread_reuses_generator(self):
        """A thread keeps one generator for its lifetime."""
        assert get_generator() is get_generator()

    def test_threads_get_independent_generators(self):
        """Concurrent threads must not share a generator or its stream."""
        generators = {}
        draws = {}

        def worker(name):
            generators[name] = get_generator()
            draws[name] = generators[name].random(5).tolist()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(g) for g in generators.values()}) == 4
        assert len({tuple(d) for d in draws.values()}) == 4
