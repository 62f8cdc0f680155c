"""Unit tests for SubmitDocumentUseCase."""

from unittest.mock import AsyncMock, Mock

import pytest

from treqy.application.dto.requests import SubmitDocumentRequest
from treqy.application.use_cases.submit_document import SubmitDocumentUseCase
from treqy.core.entities.submission import SubmissionStatus
from treqy.core.exceptions import (
    FileTooLargeError,
    InvalidDocumentTypeError,
    PersistenceFailureError,
    StorageFailureError,
    ValidationError,
)


@pytest.fixture
def mock_store():
    store = AsyncMock()
    store.create_submission = AsyncMock(side_effect=lambda submission: submission)
    return store


@pytest.fixture
def mock_storage():
    storage = Mock()
    storage.put = AsyncMock()
    return storage


@pytest.fixture
def use_case(mock_store, mock_storage):
    return SubmitDocumentUseCase(
        submission_store=mock_store, object_storage=mock_storage, max_upload_size=1024
    )


class TestSubmitDocumentUseCase:
    async def test_stores_object_then_record(self, use_case, mock_store, mock_storage, sample_pdf):
        submission = await use_case.execute(
            sample_pdf,
            "Finish Schedule.pdf",
            "studio-1",
            SubmitDocumentRequest(project_id="p-1", client_id="c-1", notes="rev B"),
            content_type="application/pdf",
        )

        assert submission.status == SubmissionStatus.PENDING
        assert submission.project_id == "p-1"
        assert submission.file_size == len(sample_pdf)
        assert submission.object_path == f"studio-1/{submission.id}/Finish_Schedule.pdf"

        mock_storage.put.assert_awaited_once_with(submission.object_path, sample_pdf)
        mock_store.create_submission.assert_awaited_once()

    async def test_blank_studio(self, use_case, mock_storage, sample_pdf):
        with pytest.raises(ValidationError):
            await use_case.execute(sample_pdf, "a.pdf", "  ")
        mock_storage.put.assert_not_awaited()

    async def test_rejects_non_pdf_before_writing(self, use_case, mock_store, mock_storage):
        with pytest.raises(InvalidDocumentTypeError):
            await use_case.execute(b"GIF89a", "a.pdf", "studio-1", content_type="image/gif")

        mock_storage.put.assert_not_awaited()
        mock_store.create_submission.assert_not_awaited()

    async def test_rejects_oversized(self, use_case, mock_storage, sample_pdf):
        with pytest.raises(FileTooLargeError):
            await use_case.execute(sample_pdf + b"x" * 2048, "a.pdf", "studio-1")
        mock_storage.put.assert_not_awaited()

    async def test_object_failure_leaves_no_record(
        self, use_case, mock_store, mock_storage, sample_pdf
    ):
        mock_storage.put.side_effect = StorageFailureError("put", "p", "disk full")

        with pytest.raises(StorageFailureError):
            await use_case.execute(sample_pdf, "a.pdf", "studio-1")

        mock_store.create_submission.assert_not_awaited()

    async def test_record_failure_reports_orphan(
        self, use_case, mock_store, mock_storage, sample_pdf
    ):
        mock_store.create_submission.side_effect = PersistenceFailureError(
            "create_submission", "database is locked"
        )

        with pytest.raises(PersistenceFailureError) as exc_info:
            await use_case.execute(sample_pdf, "a.pdf", "studio-1")

        stored_path = mock_storage.put.await_args.args[0]
        assert exc_info.value.details["orphaned_object_path"] == stored_path
        assert exc_info.value.details["error"] == "database is locked"
