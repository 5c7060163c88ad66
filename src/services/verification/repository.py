"""Verification attempt persistence."""

import logging

from src.config.constants import ATTEMPTS_TABLE
from src.config.settings import Settings
from src.infrastructure.database.connection import execute_query, execute_scalar
from src.infrastructure.database.helpers import audit_log, qualified_table
from src.services.verification.models import VerificationAttempt

logger = logging.getLogger(__name__)

_COLUMNS = "Id, DocumentPath, SelfiePath, IsVerified, ConfidenceScore, AttemptDate"


class AttemptRepository:
    """Create and read verification attempts. Attempts are never updated or deleted."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.table = qualified_table(settings.db_schema, ATTEMPTS_TABLE)

    async def create(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Insert the attempt and return it with its generated id."""
        sql = f"""
        INSERT INTO {self.table} (DocumentPath, SelfiePath, IsVerified, ConfidenceScore, AttemptDate)
        OUTPUT INSERTED.Id
        VALUES (?, ?, ?, ?, ?)
        """
        new_id = await execute_scalar(
            self.settings,
            sql,
            (
                attempt.document_path,
                attempt.selfie_path,
                attempt.is_verified,
                attempt.confidence_score,
                # DATETIME2 has no offset; stored values are UTC
                attempt.attempt_date.replace(tzinfo=None),
            ),
        )
        if new_id is None:
            raise RuntimeError("Insert did not return an id for the verification attempt")

        attempt.id = int(new_id)
        audit_log("CREATE", "verification_attempt", attempt.id)
        return attempt

    async def get(self, attempt_id: int) -> VerificationAttempt | None:
        rows = await execute_query(
            self.settings,
            f"SELECT {_COLUMNS} FROM {self.table} WHERE Id = ?",
            (attempt_id,),
        )
        return VerificationAttempt.from_db_row(rows[0]) if rows else None

    async def list_recent(self, offset: int = 0, limit: int = 20) -> list[VerificationAttempt]:
        """Most recent attempts first."""
        rows = await execute_query(
            self.settings,
            f"SELECT {_COLUMNS} FROM {self.table} ORDER BY AttemptDate DESC, Id DESC "
            "OFFSET ? ROWS FETCH NEXT ? ROWS ONLY",
            (offset, limit),
        )
        return [VerificationAttempt.from_db_row(row) for row in rows]
