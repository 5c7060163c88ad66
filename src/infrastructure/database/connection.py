"""Direct database connection utilities using pyodbc."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import pyodbc

from src.config.settings import Settings
from src.utils.retry import run_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require_connection_string(settings: Settings) -> str:
    if not settings.database_connection_string:
        raise ValueError("database_connection_string is not configured in settings")
    return settings.database_connection_string


async def _run(settings: Settings, work: Callable[[pyodbc.Cursor], T], commit: bool) -> T:
    """Run ``work`` on a fresh connection in a worker thread, retrying transient errors."""
    connection_string = _require_connection_string(settings)

    def _execute() -> T:
        conn = None
        cursor = None
        try:
            conn = pyodbc.connect(connection_string)
            cursor = conn.cursor()
            result = work(cursor)
            if commit:
                conn.commit()
            return result
        except Exception as e:
            logger.error(f"Database error: {e}")
            if conn and commit:
                conn.rollback()
            raise
        finally:
            if cursor:
                cursor.close()
            if conn:
                conn.close()

    async def _execute_in_thread() -> T:
        return await asyncio.to_thread(_execute)

    return await run_with_retry(
        _execute_in_thread,
        max_retries=settings.db_max_retries,
        initial_delay=1.0,
        backoff_factor=2.0,
        max_delay=settings.db_max_retry_delay,
    )


async def execute_query(
    settings: Settings, sql: str, params: tuple[Any, ...] | None = None
) -> list[dict[str, Any]]:
    """
    Execute a SELECT query and return results as a list of dictionaries.

    Args:
        settings: Application settings containing database_connection_string
        sql: SQL query string (use ? placeholders for parameters)
        params: Optional tuple of parameters for parameterized queries

    Returns:
        List of dictionaries, where each dictionary represents a row with column names as keys

    Raises:
        ValueError: If the connection string is not configured
        pyodbc.Error: If the query fails after retries
    """

    def _work(cursor: pyodbc.Cursor) -> list[dict[str, Any]]:
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        columns = [column[0] for column in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    return await _run(settings, _work, commit=False)


async def execute_scalar(
    settings: Settings, sql: str, params: tuple[Any, ...] | None = None
) -> Any:
    """
    Execute a write statement that produces one value (e.g. ``OUTPUT INSERTED.Id``)
    and commit it.

    Returns:
        The first column of the first row, or None if no row came back
    """

    def _work(cursor: pyodbc.Cursor) -> Any:
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        row = cursor.fetchone()
        return row[0] if row else None

    return await _run(settings, _work, commit=True)


async def execute_statement(
    settings: Settings, sql: str, params: tuple[Any, ...] | None = None
) -> int:
    """
    Execute an INSERT, UPDATE, DELETE or DDL statement and commit it.

    Returns:
        Number of affected rows as reported by the driver
    """

    def _work(cursor: pyodbc.Cursor) -> int:
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        return cursor.rowcount

    return await _run(settings, _work, commit=True)
