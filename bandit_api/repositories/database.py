"""Snowflake database connection management."""

import time
from contextlib import contextmanager
from typing import Generator, Any

import snowflake.connector
from snowflake.connector import SnowflakeConnection
from snowflake.connector.errors import Error as SnowflakeError

from bandit_api.config import settings
from bandit_api.exceptions import StoreFailureError
from bandit_api.logging_config import logger, log_db_query, log_error
from bandit_api.sql import TransactionQueries


def get_connection_params() -> dict[str, str]:
    """Get Snowflake connection parameters from settings."""
    return {
        "account": settings.snowflake_account,
        "user": settings.snowflake_user,
        "password": settings.snowflake_password,
        "warehouse": settings.snowflake_warehouse,
        "database": settings.snowflake_database,
        "schema": settings.snowflake_schema,
    }


@contextmanager
def get_connection() -> Generator[SnowflakeConnection, None, None]:
    """
    Context manager for Snowflake connections.

    Usage:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")

    Raises:
        StoreFailureError: If the connection cannot be established
    """
    start_time = time.perf_counter()

    try:
        conn = snowflake.connector.connect(**get_connection_params())
    except SnowflakeError as e:
        log_error(
            message=f"Snowflake connection failed: {str(e)}",
            error_type=type(e).__name__,
        )
        raise StoreFailureError("Could not connect to Snowflake") from e

    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.debug(
        "Snowflake connection established",
        extra={
            "type": "db_connection",
            "action": "connect",
            "duration_ms": round(duration_ms, 2),
        },
    )

    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def store_errors(query_name: str, action: str = "Query") -> Generator[None, None, None]:
    """Log Snowflake errors raised in the block and re-raise them as StoreFailureError."""
    start_time = time.perf_counter()
    try:
        yield
    except SnowflakeError as e:
        log_error(
            message=f"{action} failed: {query_name}",
            error_type=type(e).__name__,
            query_name=query_name,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        raise StoreFailureError(f"{action} failed: {query_name}") from e


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """
    Context manager for Snowflake cursors.

    Usage:
        with get_cursor() as cursor:
            cursor.execute("SELECT 1")
            results = cursor.fetchall()
    """
    with get_connection() as conn:
        cursor = conn.cursor()
        try:
            yield cursor
        finally:
            cursor.close()


def rollback(conn: SnowflakeConnection, query_name: str) -> None:
    """
    Roll back after a failed block.

    A rollback failure is logged, not raised, so the error that aborted the
    block is the one the caller sees. Snowflake discards the open
    transaction when the connection closes.
    """
    try:
        conn.rollback()
    except SnowflakeError as e:
        log_error(
            message=f"Rollback failed: {query_name}",
            error_type=type(e).__name__,
            query_name=query_name,
        )


@contextmanager
def transaction(query_name: str = "transaction") -> Generator[Any, None, None]:
    """
    Run a block of statements in one explicit Snowflake transaction.

    The block's statements are committed together when it exits normally.
    Any exception rolls the whole block back; Snowflake errors come out as
    StoreFailureError, anything else (NotFoundError raised by the block, for
    instance) propagates unchanged.

    Usage:
        with transaction("record_outcome") as cursor:
            cursor.execute(...)
    """
    start_time = time.perf_counter()

    with store_errors(query_name, action="Transaction"), get_connection() as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(TransactionQueries.BEGIN)
            yield cursor
            conn.commit()
        except Exception:
            rollback(conn, query_name)
            raise
        finally:
            cursor.close()

    log_db_query(
        query_name=query_name,
        duration_ms=(time.perf_counter() - start_time) * 1000,
        rows_affected=cursor.rowcount or 0,
    )


def execute_query(
    query: str,
    params: dict | None = None,
    query_name: str = "unknown",
) -> list[dict]:
    """
    Run a SELECT and return its rows as dicts keyed by lower-cased column name.

    Raises:
        StoreFailureError: If Snowflake rejects the query
    """
    start_time = time.perf_counter()

    with store_errors(query_name), get_cursor() as cursor:
        cursor.execute(query, params or {})
        columns = [col[0].lower() for col in cursor.description]
        rows = [dict(zip(columns, row)) for row in cursor.fetchall()]

    log_db_query(
        query_name=query_name,
        duration_ms=(time.perf_counter() - start_time) * 1000,
        rows_affected=len(rows),
    )
    return rows


def execute_write(
    query: str,
    params: dict | None = None,
    query_name: str = "unknown",
) -> int:
    """Run and commit a single DDL/DML statement; returns rows affected."""
    start_time = time.perf_counter()

    with store_errors(query_name, action="Write query"), get_connection() as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(query, params or {})
            conn.commit()
            rows_affected = cursor.rowcount or 0
        finally:
            cursor.close()

    log_db_query(
        query_name=query_name,
        duration_ms=(time.perf_counter() - start_time) * 1000,
        rows_affected=rows_affected,
    )
    return rows_affected
