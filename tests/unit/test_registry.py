"""Unit tests for the in-memory registry and its concurrency guarantees."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from bandit_api.exceptions import ConflictError, NotFoundError
from bandit_api.services.selection import ThompsonSamplingEngine


@pytest.fixture
def experiment(memory_registry):
    return memory_registry.create_experiment(
        name="button_color",
        description="A/B test for button color",
        arms=[
            {"name": "Blue Button", "description": "Control"},
            {"name": "Red Button", "description": "Variant"},
        ],
    )


class TestInMemoryArmRegistry:
    """Tests for experiment and arm bookkeeping."""

    def test_create_experiment_starts_arms_at_zero(self, experiment):
        """New arms have no successes and no failures."""
        assert [a.name for a in experiment.arms] == ["Blue Button", "Red Button"]
        assert all(a.successes == 0 and a.failures == 0 for a in experiment.arms)
        assert all(a.experiment_id == experiment.id for a in experiment.arms)

    def test_duplicate_name_conflicts(self, memory_registry, experiment):
        """Experiment names are unique."""
        with pytest.raises(ConflictError, match="already exists"):
            memory_registry.create_experiment(
                name="button_color", description=None, arms=[{"name": "A"}]
            )

    def test_get_experiment_by_id_and_name(self, memory_registry, experiment):
        """Lookups by ID and by name return the same experiment."""
        assert memory_registry.get_experiment(experiment.id).name == "button_color"
        assert memory_registry.get_experiment_by_name("button_color").id == experiment.id
        assert memory_registry.get_experiment("missing") is None
        assert memory_registry.get_experiment_by_name("missing") is None

    def test_list_experiments_newest_first(self, memory_registry, experiment):
        """Listing returns the most recently created experiment first."""
        newer = memory_registry.create_experiment(
            name="newer", description=None, arms=[{"name": "A"}]
        )

        listed = [e.id for e in memory_registry.list_experiments()]

        assert listed == [newer.id, experiment.id]

    def test_get_arms_preserves_creation_order(self, memory_registry, experiment):
        """Arms come back in the order they were defined."""
        arms = memory_registry.get_arms(experiment.id)
        assert [a.id for a in arms] == [a.id for a in experiment.arms]

    def test_get_arms_unknown_experiment(self, memory_registry):
        """Unknown experiments raise NotFoundError."""
        with pytest.raises(NotFoundError):
            memory_registry.get_arms("missing")

    def test_record_success_and_failure(self, memory_registry, experiment):
        """Each call increments exactly one counter and returns the new pair."""
        arm_id = experiment.arms[0].id

        assert memory_registry.record_outcome(arm_id, True) == (1, 0)
        assert memory_registry.record_outcome(arm_id, False) == (1, 1)
        assert memory_registry.record_outcome(arm_id, True) == (2, 1)

    def test_record_outcome_leaves_other_arms_alone(self, memory_registry, experiment):
        """Recording against one arm does not touch its siblings."""
        first, second = experiment.arms

        memory_registry.record_outcome(first.id, True)

        other = memory_registry.get_arm(second.id)
        assert (other.successes, other.failures) == (0, 0)

    def test_record_outcome_unknown_arm(self, memory_registry, experiment):
        """Unknown arms raise NotFoundError and nothing changes."""
        with pytest.raises(NotFoundError):
            memory_registry.record_outcome("missing", True)

        arms = memory_registry.get_arms(experiment.id)
        assert all(a.trials == 0 for a in arms)

    def test_record_then_read_round_trip(self, memory_registry, experiment):
        """A recorded success is visible to the next read."""
        arm_id = experiment.arms[1].id
        memory_registry.record_outcome(arm_id, False)
        before = memory_registry.get_arm(arm_id)

        memory_registry.record_outcome(arm_id, True)
        after = memory_registry.get_arm(arm_id)

        assert after.successes == before.successes + 1
        assert after.failures == before.failures

    def test_snapshots_are_frozen(self, memory_registry, experiment):
        """A snapshot does not change when the arm is updated later."""
        arm_id = experiment.arms[0].id
        snapshot = memory_registry.get_arm(arm_id)

        memory_registry.record_outcome(arm_id, True)

        assert snapshot.successes == 0


class TestConcurrentRecording:
    """No increment may be lost when many callers hit the same arm."""

    @pytest.mark.parametrize("n", [10, 100, 1000])
    def test_no_lost_increments(self, memory_registry, experiment, n):
        """N concurrent successes starting at (0, 0) end at (N, 0)."""
        arm_id = experiment.arms[0].id

        with ThreadPoolExecutor(max_workers=32) as pool:
            results = list(pool.map(lambda _: memory_registry.record_outcome(arm_id, True), range(n)))

        arm = memory_registry.get_arm(arm_id)
        assert (arm.successes, arm.failures) == (n, 0)
        assert sorted(s for s, _ in results) == list(range(1, n + 1))

    def test_returned_pairs_are_point_in_time(self, memory_registry, experiment):
        """Each returned pair is one distinct state of the arm.

        With mixed outcomes, every call sees a different total, and the
        totals cover 1..N exactly once.
        """
        arm_id = experiment.arms[0].id
        n = 1000

        with ThreadPoolExecutor(max_workers=32) as pool:
            results = list(
                pool.map(lambda i: memory_registry.record_outcome(arm_id, i % 3 == 0), range(n))
            )

        assert sorted(s + f for s, f in results) == list(range(1, n + 1))

        arm = memory_registry.get_arm(arm_id)
        assert arm.successes == sum(1 for i in range(n) if i % 3 == 0)
        assert arm.successes + arm.failures == n

    def test_counters_never_decrease_under_reads(self, memory_registry, experiment):
        """Concurrent readers only ever see counters move forward."""
        arm_id = experiment.arms[0].id
        stop = threading.Event()
        regressions = []

        def reader():
            last = (0, 0)
            while not stop.is_set():
                arm = memory_registry.get_arm(arm_id)
                current = (arm.successes, arm.failures)
                if current[0] < last[0] or current[1] < last[1]:
                    regressions.append((last, current))
                last = current

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda i: memory_registry.record_outcome(arm_id, i % 2 == 0), range(2000)))

        stop.set()
        for t in readers:
            t.join()

        assert regressions == []

    def test_selection_runs_alongside_recording(self, memory_registry, experiment):
        """Selections during heavy recording always return a real arm."""
        engine = ThompsonSamplingEngine()
        arm_ids = {a.id for a in experiment.arms}
        recording_arm = experiment.arms[0].id

        def select(_):
            return engine.select_arm(memory_registry.get_arms(experiment.id)).id

        def record(_):
            return memory_registry.record_outcome(recording_arm, True)

        with ThreadPoolExecutor(max_workers=16) as pool:
            selections = pool.map(select, range(500))
            recordings = pool.map(record, range(500))
            selected = list(selections)
            list(recordings)

        assert set(selected) <= arm_ids
        assert memory_registry.get_arm(recording_arm).successes == 500
