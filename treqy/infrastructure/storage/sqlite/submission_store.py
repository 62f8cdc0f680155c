"""
SQLite implementation of submission storage.

Status changes are compare-and-set updates guarded on the stored status,
so of two concurrent decisions on one submission exactly one applies.
"""

import uuid
from datetime import UTC, datetime

import aiosqlite

from treqy.config import get_logger
from treqy.core.entities.extraction import PendingMaterial
from treqy.core.entities.submission import Submission, SubmissionStatus, ensure_transition
from treqy.core.exceptions import (
    InvalidStateTransitionError,
    PersistenceFailureError,
    SubmissionNotFoundError,
)
from treqy.core.interfaces.storage import ISubmissionStore
from treqy.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from treqy.infrastructure.storage.sqlite.pending_material_store import insert_pending_material

logger = get_logger(__name__)

# Statuses that stamp processed_at the first time they are entered
_PROCESSED_STATUSES = (
    SubmissionStatus.READY_FOR_REVIEW.value,
    SubmissionStatus.COMPLETED.value,
    SubmissionStatus.REJECTED.value,
)


def _generate_id() -> str:
    """Generate a new UUID text ID."""
    return str(uuid.uuid4())


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


async def compare_and_set_status(
    conn: aiosqlite.Connection,
    studio_id: str,
    submission_id: str,
    expected: SubmissionStatus,
    target: SubmissionStatus,
) -> None:
    """
    Apply expected -> target on an open connection, or raise.

    Raises:
        InvalidStateTransitionError: If the edge is not allowed or the
            stored status is no longer expected
        SubmissionNotFoundError: If the submission does not exist for the studio
    """
    ensure_transition(expected, target, submission_id)

    now = datetime.now(UTC).isoformat()
    cursor = await conn.execute(
        f"""
        UPDATE submissions
        SET status = ?,
            updated_at = ?,
            processed_at = CASE
                WHEN ? IN ({", ".join("?" for _ in _PROCESSED_STATUSES)}) AND processed_at IS NULL
                THEN ? ELSE processed_at END
        WHERE id = ? AND studio_id = ? AND status = ?
        """,
        (
            target.value,
            now,
            target.value,
            *_PROCESSED_STATUSES,
            now,
            submission_id,
            studio_id,
            expected.value,
        ),
    )
    if cursor.rowcount == 1:
        return

    cursor = await conn.execute(
        "SELECT status FROM submissions WHERE id = ? AND studio_id = ?",
        (submission_id, studio_id),
    )
    row = await cursor.fetchone()
    if row is None:
        raise SubmissionNotFoundError(submission_id)
    raise InvalidStateTransitionError(submission_id, row["status"], target.value)


class SQLiteSubmissionStore(ISubmissionStore):
    """SQLite implementation of submission storage."""

    async def create_submission(self, submission: Submission) -> Submission:
        """Insert a new submission record."""
        if not submission.id:
            submission.id = _generate_id()
        submission.updated_at = datetime.now(UTC)

        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO submissions (
                        id, studio_id, project_id, client_id, file_name, file_size,
                        mime_type, object_path, notes, status, last_error,
                        created_at, updated_at, processed_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        submission.id,
                        submission.studio_id,
                        submission.project_id,
                        submission.client_id,
                        submission.file_name,
                        submission.file_size,
                        submission.mime_type,
                        submission.object_path,
                        submission.notes,
                        submission.status.value,
                        submission.last_error,
                        submission.created_at.isoformat(),
                        submission.updated_at.isoformat(),
                        submission.processed_at.isoformat() if submission.processed_at else None,
                    ),
                )
        except aiosqlite.Error as e:
            raise PersistenceFailureError("create_submission", str(e)) from e

        logger.info(
            "submission_created",
            submission_id=submission.id,
            studio_id=submission.studio_id,
            file_name=submission.file_name,
        )
        return submission

    async def get_submission(self, studio_id: str, submission_id: str) -> Submission | None:
        """Get a submission by ID within a studio."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM submissions WHERE id = ? AND studio_id = ?",
                (submission_id, studio_id),
            )
            row = await cursor.fetchone()
            return self._row_to_submission(row) if row else None

    async def list_submissions(
        self,
        studio_id: str,
        status: SubmissionStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Submission]:
        """List a studio's submissions, newest first."""
        async with get_connection() as conn:
            if status:
                cursor = await conn.execute(
                    """
                    SELECT * FROM submissions
                    WHERE studio_id = ? AND status = ?
                    ORDER BY created_at DESC
                    LIMIT ? OFFSET ?
                    """,
                    (studio_id, status.value, limit, offset),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM submissions
                    WHERE studio_id = ?
                    ORDER BY created_at DESC
                    LIMIT ? OFFSET ?
                    """,
                    (studio_id, limit, offset),
                )
            rows = await cursor.fetchall()
            return [self._row_to_submission(row) for row in rows]

    async def transition_status(
        self,
        studio_id: str,
        submission_id: str,
        expected: SubmissionStatus,
        target: SubmissionStatus,
    ) -> bool:
        """Move expected -> target if the stored status is still expected."""
        ensure_transition(expected, target, submission_id)
        try:
            async with get_transaction(immediate=True) as conn:
                await compare_and_set_status(conn, studio_id, submission_id, expected, target)
        except InvalidStateTransitionError:
            logger.info(
                "submission_transition_lost",
                submission_id=submission_id,
                expected=expected.value,
                target=target.value,
            )
            return False
        except aiosqlite.Error as e:
            raise PersistenceFailureError("transition_status", str(e)) from e

        logger.info(
            "submission_status_changed",
            submission_id=submission_id,
            from_status=expected.value,
            to_status=target.value,
        )
        return True

    async def record_error(
        self, studio_id: str, submission_id: str, error: str | None
    ) -> None:
        """Store (or clear) the diagnostic of the last failed extraction."""
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    UPDATE submissions SET last_error = ?, updated_at = ?
                    WHERE id = ? AND studio_id = ?
                    """,
                    (error, datetime.now(UTC).isoformat(), submission_id, studio_id),
                )
        except aiosqlite.Error as e:
            raise PersistenceFailureError("record_error", str(e)) from e

    async def save_extraction(
        self,
        studio_id: str,
        submission_id: str,
        pending: list[PendingMaterial],
    ) -> list[PendingMaterial]:
        """Insert provisional materials and move processing -> ready_for_review."""
        try:
            async with get_transaction(immediate=True) as conn:
                await compare_and_set_status(
                    conn,
                    studio_id,
                    submission_id,
                    SubmissionStatus.PROCESSING,
                    SubmissionStatus.READY_FOR_REVIEW,
                )
                await conn.execute(
                    "UPDATE submissions SET last_error = NULL WHERE id = ? AND studio_id = ?",
                    (submission_id, studio_id),
                )
                for item in pending:
                    await insert_pending_material(conn, item)
        except aiosqlite.Error as e:
            raise PersistenceFailureError("save_extraction", str(e)) from e

        logger.info(
            "extraction_saved",
            submission_id=submission_id,
            pending_materials=len(pending),
        )
        return pending

    async def reject_submission(
        self,
        studio_id: str,
        submission_id: str,
        expected: SubmissionStatus,
    ) -> int:
        """Move expected -> rejected and discard provisional materials."""
        try:
            async with get_transaction(immediate=True) as conn:
                await compare_and_set_status(
                    conn, studio_id, submission_id, expected, SubmissionStatus.REJECTED
                )
                cursor = await conn.execute(
                    "DELETE FROM pending_materials WHERE submission_id = ? AND studio_id = ?",
                    (submission_id, studio_id),
                )
                discarded = cursor.rowcount
        except aiosqlite.Error as e:
            raise PersistenceFailureError("reject_submission", str(e)) from e

        logger.info(
            "submission_rejected",
            submission_id=submission_id,
            from_status=expected.value,
            discarded=discarded,
        )
        return discarded

    async def delete_submission(self, studio_id: str, submission_id: str) -> int:
        """Delete a submission; provisional rows cascade, catalog rows survive."""
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    """
                    SELECT COUNT(*) FROM pending_materials
                    WHERE submission_id = ? AND studio_id = ? AND status != 'approved'
                    """,
                    (submission_id, studio_id),
                )
                discarded = (await cursor.fetchone())[0]

                cursor = await conn.execute(
                    "DELETE FROM submissions WHERE id = ? AND studio_id = ?",
                    (submission_id, studio_id),
                )
                if cursor.rowcount == 0:
                    raise SubmissionNotFoundError(submission_id)
        except aiosqlite.Error as e:
            raise PersistenceFailureError("delete_submission", str(e)) from e

        logger.info(
            "submission_deleted",
            submission_id=submission_id,
            discarded=discarded,
        )
        return discarded

    def _row_to_submission(self, row: aiosqlite.Row) -> Submission:
        """Convert database row to Submission entity."""
        return Submission(
            id=row["id"],
            studio_id=row["studio_id"],
            project_id=row["project_id"],
            client_id=row["client_id"],
            file_name=row["file_name"],
            file_size=row["file_size"],
            mime_type=row["mime_type"],
            object_path=row["object_path"],
            notes=row["notes"],
            status=SubmissionStatus(row["status"]),
            last_error=row["last_error"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            processed_at=_parse_dt(row["processed_at"]),
        )
