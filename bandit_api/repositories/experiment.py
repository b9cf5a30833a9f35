"""Snowflake-backed experiment registry."""

import uuid
from typing import Optional

from bandit_api.exceptions import ConflictError, NotFoundError
from bandit_api.repositories.database import execute_query, execute_write, transaction
from bandit_api.repositories.registry import Arm, ArmRegistry, Experiment, utc_now
from bandit_api.sql import ArmQueries, ExperimentQueries, SchemaQueries


def _row_to_arm(row: dict) -> Arm:
    return Arm(
        id=row["id"],
        experiment_id=row["experiment_id"],
        name=row["name"],
        description=row["description"],
        successes=int(row["successes"]),
        failures=int(row["failures"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SnowflakeArmRegistry(ArmRegistry):
    """
    Registry whose canonical counters live in the `arms` table.

    Outcome recording runs one conditional UPDATE and a read-back of the
    counters inside a single transaction. Snowflake holds the row's write
    lock until commit, so concurrent increments serialize in the store and
    the returned pair is the state this transaction produced.
    """

    def initialize(self) -> None:
        execute_write(SchemaQueries.CREATE_EXPERIMENTS, query_name="create_experiments_table")
        execute_write(SchemaQueries.CREATE_ARMS, query_name="create_arms_table")

    def create_experiment(
        self,
        name: str,
        description: Optional[str],
        arms: list[dict],
    ) -> Experiment:
        experiment_id = str(uuid.uuid4())
        now = utc_now()
        created_arms = []

        with transaction("create_experiment") as cursor:
            cursor.execute(
                ExperimentQueries.INSERT,
                {"id": experiment_id, "name": name, "description": description},
            )
            if cursor.rowcount == 0:
                raise ConflictError(f"Experiment with name '{name}' already exists")

            for position, arm in enumerate(arms):
                arm_id = str(uuid.uuid4())
                cursor.execute(
                    ArmQueries.INSERT,
                    {
                        "id": arm_id,
                        "experiment_id": experiment_id,
                        "position": position,
                        "name": arm["name"],
                        "description": arm.get("description"),
                    },
                )
                created_arms.append(
                    Arm(
                        id=arm_id,
                        experiment_id=experiment_id,
                        name=arm["name"],
                        description=arm.get("description"),
                        successes=0,
                        failures=0,
                        created_at=now,
                        updated_at=now,
                    )
                )

        return Experiment(
            id=experiment_id,
            name=name,
            description=description,
            arms=tuple(created_arms),
            created_at=now,
            updated_at=now,
        )

    def _build_experiment(self, row: dict) -> Experiment:
        arms = execute_query(
            ArmQueries.SELECT_BY_EXPERIMENT,
            {"experiment_id": row["id"]},
            query_name="get_arms_by_experiment",
        )
        return Experiment(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            arms=tuple(_row_to_arm(a) for a in arms),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_experiment(self, experiment_id: str) -> Optional[Experiment]:
        result = execute_query(
            ExperimentQueries.SELECT_BY_ID,
            {"id": experiment_id},
            query_name="get_experiment_by_id",
        )
        return self._build_experiment(result[0]) if result else None

    def get_experiment_by_name(self, name: str) -> Optional[Experiment]:
        result = execute_query(
            ExperimentQueries.SELECT_BY_NAME,
            {"name": name},
            query_name="get_experiment_by_name",
        )
        return self._build_experiment(result[0]) if result else None

    def list_experiments(self) -> list[Experiment]:
        rows = execute_query(ExperimentQueries.SELECT_ALL, query_name="list_experiments")
        return [self._build_experiment(row) for row in rows]

    def get_arms(self, experiment_id: str) -> list[Arm]:
        # One SELECT: every row's counter pair comes from the same statement snapshot
        rows = execute_query(
            ArmQueries.SELECT_BY_EXPERIMENT,
            {"experiment_id": experiment_id},
            query_name="get_arms_by_experiment",
        )
        if not rows:
            raise NotFoundError(f"Experiment '{experiment_id}' not found")
        return [_row_to_arm(row) for row in rows]

    def get_arm(self, arm_id: str) -> Optional[Arm]:
        result = execute_query(
            ArmQueries.SELECT_BY_ID,
            {"id": arm_id},
            query_name="get_arm_by_id",
        )
        return _row_to_arm(result[0]) if result else None

    def record_outcome(self, arm_id: str, success: bool) -> tuple[int, int]:
        params = {"id": arm_id, "success": success}

        with transaction("record_outcome") as cursor:
            cursor.execute(ArmQueries.INCREMENT, params)
            if cursor.rowcount == 0:
                raise NotFoundError(f"Arm '{arm_id}' not found")

            cursor.execute(ArmQueries.SELECT_COUNTERS, {"id": arm_id})
            successes, failures = cursor.fetchone()

        return int(successes), int(failures)
