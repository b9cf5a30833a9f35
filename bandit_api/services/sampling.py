"""Gamma and Beta samplers used by Thompson Sampling.

Beta(alpha, beta) draws are built from two independent Gamma(shape, 1) draws
via X / (X + Y). Gamma draws use the Marsaglia-Tsang squeeze method, with the
usual boost for shapes below 1:

    Gamma(a) = Gamma(a + 1) * U^(1/a),   U ~ Uniform(0, 1)

Random numbers come from numpy ``Generator`` objects, which are not safe to
share between threads. Each thread gets its own generator, spawned from a
single process-wide ``SeedSequence`` so streams are independent and the
process is seeded exactly once.
"""

import math
import threading
from typing import Optional

import numpy as np

from bandit_api.config import settings
from bandit_api.exceptions import InvalidInputError
from bandit_api.logging_config import logger

_seed_sequence = np.random.SeedSequence(settings.random_seed)
_spawn_lock = threading.Lock()
_thread_state = threading.local()

DEGENERATE_BETA_FALLBACK = 0.5


def get_generator() -> np.random.Generator:
    """Return the calling thread's random generator, creating it on first use."""
    rng = getattr(_thread_state, "rng", None)
    if rng is None:
        # SeedSequence.spawn mutates the parent's child counter
        with _spawn_lock:
            child = _seed_sequence.spawn(1)[0]
        rng = np.random.default_rng(child)
        _thread_state.rng = rng
    return rng


def sample_gamma(shape: float, rng: Optional[np.random.Generator] = None) -> float:
    """
    Draw one sample from Gamma(shape, 1).

    Args:
        shape: Shape parameter, must be > 0
        rng: Generator to draw from (default: the thread's generator)

    Returns:
        Non-negative sample

    Raises:
        InvalidInputError: If shape is not a positive number
    """
    if not shape > 0:
        raise InvalidInputError(f"Gamma shape must be positive, got {shape}")

    if rng is None:
        rng = get_generator()

    boost = 1.0
    if shape < 1:
        boost = rng.random() ** (1.0 / shape)
        shape += 1.0

    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)

    # Rejection loop: terminates with probability 1, usually on the first pass
    while True:
        x = rng.standard_normal()
        v = 1.0 + c * x
        if v <= 0:
            continue
        v = v * v * v
        u = 1.0 - rng.random()  # (0, 1], keeps log(u) finite

        if u < 1.0 - 0.331 * x ** 4 or math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
            return d * v * boost


def sample_beta(
    alpha: float,
    beta: float,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """
    Draw one sample from Beta(alpha, beta).

    If both Gamma draws underflow to exactly 0 the ratio is 0/0; the midpoint
    (0.5) is returned instead and the event is logged.

    Args:
        alpha: First shape parameter, must be > 0
        beta: Second shape parameter, must be > 0
        rng: Generator to draw from (default: the thread's generator)

    Returns:
        Sample in [0, 1]
    """
    if not alpha > 0 or not beta > 0:
        raise InvalidInputError(
            f"Beta parameters must be positive, got alpha={alpha}, beta={beta}"
        )

    if rng is None:
        rng = get_generator()

    x = sample_gamma(alpha, rng)
    y = sample_gamma(beta, rng)
    total = x + y

    if total == 0:
        logger.warning(
            "Degenerate Beta draw, both gamma samples were zero",
            extra={
                "type": "numeric_degeneracy",
                "alpha": alpha,
                "beta": beta,
                "fallback": DEGENERATE_BETA_FALLBACK,
            },
        )
        return DEGENERATE_BETA_FALLBACK

    return x / total
