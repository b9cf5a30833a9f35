"""Thompson Sampling bandit API."""
