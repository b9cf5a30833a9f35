"""Test fixtures and configuration."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from fastapi.testclient import TestClient

from bandit_api.main import app
from bandit_api.rate_limit import rate_limiter
from bandit_api.repositories import Arm, InMemoryArmRegistry, get_registry


@pytest.fixture(autouse=True)
def fresh_state():
    """Each test gets an empty registry and an empty rate limiter."""
    get_registry.cache_clear()
    rate_limiter.reset()
    yield
    get_registry.cache_clear()
    rate_limiter.reset()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def registry():
    """The registry the API is using for this test."""
    return get_registry()


@pytest.fixture
def memory_registry():
    """A standalone in-memory registry."""
    return InMemoryArmRegistry()


@pytest.fixture
def rng():
    """Seeded generator for reproducible draws."""
    return np.random.default_rng(12345)


@pytest.fixture
def make_arm():
    """Factory for arm snapshots with given counters."""
    now = datetime.now(timezone.utc)

    def _make_arm(arm_id: str, successes: int = 0, failures: int = 0) -> Arm:
        return Arm(
            id=arm_id,
            experiment_id="exp_001",
            name=arm_id,
            description=None,
            successes=successes,
            failures=failures,
            created_at=now,
            updated_at=now,
        )

    return _make_arm


@pytest.fixture
def sample_experiment_data():
    """Sample experiment creation data."""
    return {
        "name": "button_color",
        "description": "A/B test for button color",
        "arms": [
            {"name": "Blue Button", "description": "Control"},
            {"name": "Red Button", "description": "Variant"},
        ],
    }


@pytest.fixture
def mock_snowflake():
    """Mock Snowflake connection used by the database helpers."""
    with patch("snowflake.connector.connect") as mock_connect:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_conn.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_conn
        yield mock_connect, mock_conn, mock_cursor
