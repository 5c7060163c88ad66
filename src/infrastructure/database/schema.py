"""Table definition for verification attempts."""

import logging

from src.config.constants import ATTEMPTS_TABLE, MAX_PATH_LENGTH
from src.config.settings import Settings
from src.infrastructure.database.connection import execute_statement
from src.infrastructure.database.helpers import qualified_table

logger = logging.getLogger(__name__)


def attempts_table_ddl(schema: str) -> str:
    """CREATE TABLE statement guarded by an existence check."""
    table = qualified_table(schema, ATTEMPTS_TABLE)
    return f"""
    IF OBJECT_ID(N'{schema}.{ATTEMPTS_TABLE}', N'U') IS NULL
    CREATE TABLE {table} (
        Id INT IDENTITY(1,1) NOT NULL PRIMARY KEY,
        DocumentPath NVARCHAR({MAX_PATH_LENGTH}) NOT NULL,
        SelfiePath NVARCHAR({MAX_PATH_LENGTH}) NOT NULL,
        IsVerified BIT NOT NULL,
        ConfidenceScore FLOAT NOT NULL,
        AttemptDate DATETIME2 NOT NULL
    )
    """


async def ensure_schema(settings: Settings) -> None:
    """Create the attempts table if it does not exist yet."""
    await execute_statement(settings, attempts_table_ddl(settings.db_schema))
    logger.info("Table %s.%s is ready", settings.db_schema, ATTEMPTS_TABLE)
