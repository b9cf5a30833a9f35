"""Experiment registry: the owner of every arm's success/failure counters.

Two operations matter to the engine:

- ``get_arms``: a snapshot of an experiment's arms and their counters, taken
  at call time. Each arm's (successes, failures) pair is internally
  consistent.
- ``record_outcome``: increment exactly one counter of one arm, atomically,
  and return the post-increment pair.

``InMemoryArmRegistry`` implements both with one lock per arm. Recording
against different arms never contends, and a snapshot never pairs a
successes value with a failures value from a different moment.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from bandit_api.exceptions import ConflictError, NotFoundError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Arm:
    """Point-in-time view of one arm and its counters."""

    id: str
    experiment_id: str
    name: str
    description: Optional[str]
    successes: int
    failures: int
    created_at: datetime
    updated_at: datetime

    @property
    def trials(self) -> int:
        return self.successes + self.failures


@dataclass(frozen=True)
class Experiment:
    """An experiment and a snapshot of its arms, in creation order."""

    id: str
    name: str
    description: Optional[str]
    arms: tuple[Arm, ...]
    created_at: datetime
    updated_at: datetime


class ArmRegistry(ABC):
    """Storage contract the engine relies on."""

    def initialize(self) -> None:
        """Prepare the backing store. No-op unless the store needs setup."""

    @abstractmethod
    def create_experiment(
        self,
        name: str,
        description: Optional[str],
        arms: list[dict],
    ) -> Experiment:
        """Create an experiment with a fixed set of arms, all at (0, 0).

        Raises:
            ConflictError: If an experiment with this name already exists
        """

    @abstractmethod
    def get_experiment(self, experiment_id: str) -> Optional[Experiment]:
        """Get experiment by ID with its arms, or None."""

    @abstractmethod
    def get_experiment_by_name(self, name: str) -> Optional[Experiment]:
        """Get experiment by name, or None."""

    @abstractmethod
    def list_experiments(self) -> list[Experiment]:
        """All experiments, newest first."""

    @abstractmethod
    def get_arms(self, experiment_id: str) -> list[Arm]:
        """Snapshot of an experiment's arms.

        Raises:
            NotFoundError: If the experiment does not exist
        """

    @abstractmethod
    def get_arm(self, arm_id: str) -> Optional[Arm]:
        """Snapshot of a single arm, or None."""

    @abstractmethod
    def record_outcome(self, arm_id: str, success: bool) -> tuple[int, int]:
        """Atomically add one success or one failure to an arm.

        Returns:
            Tuple of (successes, failures) right after this increment

        Raises:
            NotFoundError: If the arm does not exist (nothing is mutated)
        """


class ArmStatistics:
    """Mutable counters for one arm, guarded by the arm's own lock."""

    def __init__(
        self,
        arm_id: str,
        experiment_id: str,
        name: str,
        description: Optional[str],
        created_at: datetime,
    ):
        self.id = arm_id
        self.experiment_id = experiment_id
        self.name = name
        self.description = description
        self.created_at = created_at
        self._successes = 0
        self._failures = 0
        self._updated_at = created_at
        self._lock = threading.Lock()

    def record(self, success: bool) -> tuple[int, int]:
        """Increment one counter and return the resulting pair."""
        with self._lock:
            if success:
                self._successes += 1
            else:
                self._failures += 1
            self._updated_at = utc_now()
            return self._successes, self._failures

    def snapshot(self) -> Arm:
        with self._lock:
            return Arm(
                id=self.id,
                experiment_id=self.experiment_id,
                name=self.name,
                description=self.description,
                successes=self._successes,
                failures=self._failures,
                created_at=self.created_at,
                updated_at=self._updated_at,
            )


@dataclass(frozen=True)
class _ExperimentEntry:
    id: str
    name: str
    description: Optional[str]
    arms: tuple[ArmStatistics, ...]
    created_at: datetime

    def snapshot(self) -> Experiment:
        arms = tuple(stats.snapshot() for stats in self.arms)
        return Experiment(
            id=self.id,
            name=self.name,
            description=self.description,
            arms=arms,
            created_at=self.created_at,
            updated_at=max([self.created_at, *(a.updated_at for a in arms)]),
        )


class InMemoryArmRegistry(ArmRegistry):
    """Process-local registry with per-arm locking."""

    def __init__(self):
        self._experiments: dict[str, _ExperimentEntry] = {}
        self._names: dict[str, str] = {}
        self._arms: dict[str, ArmStatistics] = {}
        # Serializes writers and full scans of the maps. Entries are never
        # removed, so single-key lookups skip it and arms never contend.
        self._lock = threading.Lock()

    def create_experiment(
        self,
        name: str,
        description: Optional[str],
        arms: list[dict],
    ) -> Experiment:
        experiment_id = str(uuid.uuid4())
        now = utc_now()
        entry = _ExperimentEntry(
            id=experiment_id,
            name=name,
            description=description,
            arms=tuple(
                ArmStatistics(
                    arm_id=str(uuid.uuid4()),
                    experiment_id=experiment_id,
                    name=arm["name"],
                    description=arm.get("description"),
                    created_at=now,
                )
                for arm in arms
            ),
            created_at=now,
        )

        with self._lock:
            if name in self._names:
                raise ConflictError(f"Experiment with name '{name}' already exists")
            self._experiments[experiment_id] = entry
            self._names[name] = experiment_id
            for stats in entry.arms:
                self._arms[stats.id] = stats

        return entry.snapshot()

    def get_experiment(self, experiment_id: str) -> Optional[Experiment]:
        entry = self._experiments.get(experiment_id)
        return entry.snapshot() if entry else None

    def get_experiment_by_name(self, name: str) -> Optional[Experiment]:
        experiment_id = self._names.get(name)
        return self.get_experiment(experiment_id) if experiment_id else None

    def list_experiments(self) -> list[Experiment]:
        # Dict order is creation order
        with self._lock:
            entries = list(self._experiments.values())
        return [entry.snapshot() for entry in reversed(entries)]

    def get_arms(self, experiment_id: str) -> list[Arm]:
        entry = self._experiments.get(experiment_id)
        if entry is None:
            raise NotFoundError(f"Experiment '{experiment_id}' not found")
        return [stats.snapshot() for stats in entry.arms]

    def get_arm(self, arm_id: str) -> Optional[Arm]:
        stats = self._arms.get(arm_id)
        return stats.snapshot() if stats else None

    def record_outcome(self, arm_id: str, success: bool) -> tuple[int, int]:
        stats = self._arms.get(arm_id)
        if stats is None:
            raise NotFoundError(f"Arm '{arm_id}' not found")
        return stats.record(success)
