"""SQL queries for the bandit API."""


class SchemaQueries:
    """DDL for the Snowflake backend."""

    CREATE_EXPERIMENTS = """
        CREATE TABLE IF NOT EXISTS experiments (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(255) NOT NULL UNIQUE,
            description TEXT,
            created_at TIMESTAMP_TZ DEFAULT CURRENT_TIMESTAMP(),
            updated_at TIMESTAMP_TZ DEFAULT CURRENT_TIMESTAMP()
        )
    """

    CREATE_ARMS = """
        CREATE TABLE IF NOT EXISTS arms (
            id VARCHAR(36) PRIMARY KEY,
            experiment_id VARCHAR(36) NOT NULL REFERENCES experiments(id),
            position INTEGER NOT NULL,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            successes INTEGER NOT NULL DEFAULT 0,
            failures INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP_TZ DEFAULT CURRENT_TIMESTAMP(),
            updated_at TIMESTAMP_TZ DEFAULT CURRENT_TIMESTAMP()
        )
    """


class TransactionQueries:
    """Explicit transaction control."""

    BEGIN = "BEGIN TRANSACTION"


class ExperimentQueries:
    """SQL queries for experiments."""

    # Snowflake does not enforce UNIQUE; the name check lives in the INSERT
    # and zero inserted rows means the name is taken.
    INSERT = """
        INSERT INTO experiments (id, name, description)
        SELECT %(id)s, %(name)s, %(description)s
        WHERE NOT EXISTS (
            SELECT 1 FROM experiments WHERE name = %(name)s
        )
    """

    SELECT_BY_ID = """
        SELECT id, name, description, created_at, updated_at
        FROM experiments
        WHERE id = %(id)s
    """

    SELECT_BY_NAME = """
        SELECT id, name, description, created_at, updated_at
        FROM experiments
        WHERE name = %(name)s
    """

    SELECT_ALL = """
        SELECT id, name, description, created_at, updated_at
        FROM experiments
        ORDER BY created_at DESC
    """


class ArmQueries:
    """SQL queries for arms."""

    INSERT = """
        INSERT INTO arms (id, experiment_id, position, name, description, successes, failures)
        VALUES (%(id)s, %(experiment_id)s, %(position)s, %(name)s, %(description)s, 0, 0)
    """

    SELECT_BY_EXPERIMENT = """
        SELECT id, experiment_id, name, description, successes, failures, created_at, updated_at
        FROM arms
        WHERE experiment_id = %(experiment_id)s
        ORDER BY position
    """

    SELECT_BY_ID = """
        SELECT id, experiment_id, name, description, successes, failures, created_at, updated_at
        FROM arms
        WHERE id = %(id)s
    """

    # Single statement so the read-modify-write happens inside the store
    INCREMENT = """
        UPDATE arms
        SET
            successes = successes + IFF(%(success)s, 1, 0),
            failures = failures + IFF(%(success)s, 0, 1),
            updated_at = CURRENT_TIMESTAMP()
        WHERE id = %(id)s
    """

    SELECT_COUNTERS = """
        SELECT successes, failures
        FROM arms
        WHERE id = %(id)s
    """
