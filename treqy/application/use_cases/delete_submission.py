"""
Delete Submission Use Case.

Removes a submission with its provisional materials, then its stored
document. Approved catalog materials are kept.
"""

from dataclasses import dataclass

from treqy.config import get_logger
from treqy.core.exceptions import StorageFailureError, SubmissionNotFoundError
from treqy.core.interfaces import IObjectStorage, ISubmissionStore

logger = get_logger(__name__)


@dataclass
class DeletionResult:
    """Result of deleting a submission."""

    submission_id: str
    discarded_materials: int = 0
    orphaned_object_path: str | None = None


class DeleteSubmissionUseCase:
    """
    Use case for deleting a submission.

    The record goes first so a failed object delete only ever leaves an
    unreferenced file, never a record pointing at a missing one.
    """

    def __init__(
        self,
        submission_store: ISubmissionStore | None = None,
        object_storage: IObjectStorage | None = None,
    ):
        self._submission_store = submission_store
        self._object_storage = object_storage

    async def _get_submission_store(self) -> ISubmissionStore:
        if self._submission_store is None:
            from treqy.infrastructure.storage.sqlite import get_submission_store

            self._submission_store = await get_submission_store()
        return self._submission_store

    def _get_object_storage(self) -> IObjectStorage:
        if self._object_storage is None:
            from treqy.infrastructure.storage.local_objects import get_object_storage

            self._object_storage = get_object_storage()
        return self._object_storage

    async def execute(self, studio_id: str, submission_id: str) -> DeletionResult:
        """Delete a submission and its document."""
        store = await self._get_submission_store()
        submission = await store.get_submission(studio_id, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        discarded = await store.delete_submission(studio_id, submission_id)
        result = DeletionResult(submission_id=submission_id, discarded_materials=discarded)

        if submission.object_path:
            try:
                await self._get_object_storage().delete(submission.object_path)
            except StorageFailureError as e:
                logger.warning(
                    "orphaned_object",
                    submission_id=submission_id,
                    object_path=submission.object_path,
                    error=e.message,
                )
                result.orphaned_object_path = submission.object_path

        logger.info(
            "submission_removed",
            submission_id=submission_id,
            discarded=discarded,
            orphaned=result.orphaned_object_path is not None,
        )
        return result
