"""
Submit Document Use Case.

Validates an uploaded schedule, stores its bytes and records a pending
submission.
"""

import uuid

from treqy.application.dto.requests import SubmitDocumentRequest
from treqy.config import get_logger, get_settings
from treqy.core.entities.submission import Submission
from treqy.core.exceptions import PersistenceFailureError, ValidationError
from treqy.core.interfaces import IObjectStorage, ISubmissionStore
from treqy.core.services.document_intake import build_object_path, validate_upload

logger = get_logger(__name__)


class SubmitDocumentUseCase:
    """
    Use case for accepting a new document.

    Flow:
    1. Validate tenant, file name, size and media type
    2. Write the bytes to object storage
    3. Create the submission record (status pending)

    A failed object write leaves no record. A failed record write leaves
    the object in place and reports its path.
    """

    def __init__(
        self,
        submission_store: ISubmissionStore | None = None,
        object_storage: IObjectStorage | None = None,
        max_upload_size: int | None = None,
    ):
        self._submission_store = submission_store
        self._object_storage = object_storage
        self._max_upload_size = max_upload_size

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

    async def execute(
        self,
        file_content: bytes,
        filename: str,
        studio_id: str,
        request: SubmitDocumentRequest | None = None,
        content_type: str | None = None,
    ) -> Submission:
        """
        Accept a document for extraction.

        Raises:
            ValidationError: Missing tenant, empty or oversized file
            InvalidDocumentTypeError: Not a PDF
            StorageFailureError: Object write failed; nothing was recorded
            PersistenceFailureError: Record write failed; carries the
                orphaned object path
        """
        request = request or SubmitDocumentRequest()
        if not studio_id or not studio_id.strip():
            raise ValidationError("studio_id", "Studio ID is required")

        max_size = self._max_upload_size or get_settings().api.max_upload_size
        media_type = validate_upload(file_content, filename, content_type, max_size)

        submission_id = str(uuid.uuid4())
        object_path = build_object_path(studio_id, submission_id, filename)

        storage = self._get_object_storage()
        await storage.put(object_path, file_content)

        submission = Submission(
            id=submission_id,
            studio_id=studio_id,
            project_id=request.project_id,
            client_id=request.client_id,
            file_name=filename,
            file_size=len(file_content),
            mime_type=media_type,
            object_path=object_path,
            notes=request.notes,
        )

        store = await self._get_submission_store()
        try:
            submission = await store.create_submission(submission)
        except PersistenceFailureError as e:
            logger.error(
                "orphaned_object",
                submission_id=submission_id,
                object_path=object_path,
                error=e.message,
            )
            raise PersistenceFailureError(
                "create_submission",
                e.details.get("error", e.message),
                orphaned_object_path=object_path,
            ) from e

        logger.info(
            "document_submitted",
            submission_id=submission.id,
            studio_id=studio_id,
            file_name=filename,
            file_size=submission.file_size,
        )
        return submission
