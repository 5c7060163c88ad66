"""Shared database operation helpers."""

import logging
import re

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def qualified_table(schema: str, table: str) -> str:
    """Return ``[schema].[table]``, rejecting anything that is not a plain identifier."""
    for part in (schema, table):
        if not _IDENTIFIER.match(part):
            raise ValueError(f"Invalid SQL identifier: {part!r}")
    return f"[{schema}].[{table}]"


def audit_log(operation: str, resource: str, resource_id: str | int) -> None:
    """Log CRUD operations for audit trail."""
    logger.info("AUDIT %s %s id=%s", operation, resource, resource_id)
