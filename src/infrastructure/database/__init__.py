"""Database connection utilities."""

from src.infrastructure.database.connection import execute_query, execute_scalar, execute_statement
from src.infrastructure.database.helpers import audit_log, qualified_table
from src.infrastructure.database.schema import ensure_schema

__all__ = [
    "audit_log",
    "ensure_schema",
    "execute_query",
    "execute_scalar",
    "execute_statement",
    "qualified_table",
]
