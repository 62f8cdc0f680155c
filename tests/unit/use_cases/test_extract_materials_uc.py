"""Unit tests for ExtractMaterialsUseCase."""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from treqy.application.use_cases.extract_materials import ExtractMaterialsUseCase
from treqy.config import get_settings
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.exceptions import (
    ExtractionServiceUnavailableError,
    InvalidStateTransitionError,
    MalformedExtractionResponseError,
    NoStructuredDataFoundError,
    StorageFailureError,
    SubmissionNotFoundError,
)

REPLY = "Sure:\n" + json.dumps(
    [
        {
            "manufacturer_name": "Acme",
            "materials": [
                {"name": "Tile A", "tag": "T-1", "category": "Tile"},
                {"name": "Tile B", "category": "Tile", "notes": "NOT USED"},
            ],
        },
        {"manufacturer_name": "", "materials": [{"name": "Paint P1", "category": "Paint"}]},
    ]
)


def _submission(status: SubmissionStatus) -> Submission:
    return Submission(
        id="sub-1",
        studio_id="studio-1",
        file_name="a.pdf",
        object_path="studio-1/sub-1/a.pdf",
        status=status,
    )


@pytest.fixture
def mock_store():
    store = AsyncMock()
    store.get_submission = AsyncMock(
        side_effect=[
            _submission(SubmissionStatus.PENDING),
            _submission(SubmissionStatus.READY_FOR_REVIEW),
        ]
    )
    store.transition_status = AsyncMock(return_value=True)
    store.save_extraction = AsyncMock(side_effect=lambda studio, sub, pending: pending)
    return store


@pytest.fixture
def mock_storage(sample_pdf):
    storage = Mock()
    storage.get = AsyncMock(return_value=sample_pdf)
    return storage


@pytest.fixture
def mock_provider():
    provider = Mock()
    provider.extract = AsyncMock(return_value=REPLY)
    return provider


@pytest.fixture
def use_case(mock_store, mock_storage, mock_provider):
    return ExtractMaterialsUseCase(
        submission_store=mock_store,
        object_storage=mock_storage,
        provider=mock_provider,
        max_attempts=1,
    )


class TestExtractMaterialsUseCase:
    async def test_success(self, use_case, mock_store, mock_provider, sample_pdf):
        outcome = await use_case.execute("studio-1", "sub-1")

        mock_store.transition_status.assert_awaited_once_with(
            "studio-1", "sub-1", SubmissionStatus.PENDING, SubmissionStatus.PROCESSING
        )
        mock_provider.extract.assert_awaited_once_with(sample_pdf, "application/pdf")

        assert outcome.submission.status == SubmissionStatus.READY_FOR_REVIEW
        assert outcome.result.total_materials == 2
        assert [(p.manufacturer_name, p.name, p.position) for p in outcome.pending] == [
            ("Acme", "Tile A", 0),
            ("UNSPECIFIED MANUFACTURER", "Paint P1", 1),
        ]
        mock_store.record_error.assert_not_awaited()

    async def test_unknown_submission(self, use_case, mock_store):
        mock_store.get_submission.side_effect = None
        mock_store.get_submission.return_value = None

        with pytest.raises(SubmissionNotFoundError):
            await use_case.execute("studio-1", "missing")

    async def test_completed_submission_is_not_re_extracted(
        self, use_case, mock_store, mock_provider
    ):
        mock_store.get_submission.side_effect = None
        mock_store.get_submission.return_value = _submission(SubmissionStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionError):
            await use_case.execute("studio-1", "sub-1")

        mock_provider.extract.assert_not_awaited()

    async def test_processing_submission_is_re_run(self, use_case, mock_store):
        mock_store.get_submission.side_effect = [
            _submission(SubmissionStatus.PROCESSING),
            _submission(SubmissionStatus.READY_FOR_REVIEW),
        ]

        await use_case.execute("studio-1", "sub-1")

        mock_store.transition_status.assert_not_awaited()
        mock_store.save_extraction.assert_awaited_once()

    async def test_lost_race_to_processing(self, use_case, mock_store, mock_provider):
        mock_store.transition_status.return_value = False
        mock_store.get_submission.side_effect = [
            _submission(SubmissionStatus.PENDING),
            _submission(SubmissionStatus.REJECTED),
        ]

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await use_case.execute("studio-1", "sub-1")

        assert exc_info.value.current == "rejected"
        mock_provider.extract.assert_not_awaited()

    async def test_provider_failure_records_error(self, use_case, mock_store, mock_provider):
        mock_provider.extract.side_effect = ExtractionServiceUnavailableError(
            "upstream returned an error", status_code=502, error_body="bad gateway"
        )

        with pytest.raises(ExtractionServiceUnavailableError):
            await use_case.execute("studio-1", "sub-1")

        mock_store.record_error.assert_awaited_once()
        error_text = mock_store.record_error.await_args.args[2]
        assert error_text.startswith("EXTRACTION_SERVICE_UNAVAILABLE:")
        mock_store.save_extraction.assert_not_awaited()

    async def test_malformed_reply_records_error(self, use_case, mock_store, mock_provider):
        mock_provider.extract.return_value = '[{"manufacturer_name": "X", "materials": [}]'

        with pytest.raises(MalformedExtractionResponseError):
            await use_case.execute("studio-1", "sub-1")

        error_text = mock_store.record_error.await_args.args[2]
        assert error_text.startswith("MALFORMED_EXTRACTION_RESPONSE:")

    async def test_missing_document_records_error(self, use_case, mock_store, mock_storage):
        mock_storage.get.side_effect = StorageFailureError("get", "p", "object not found")

        with pytest.raises(StorageFailureError):
            await use_case.execute("studio-1", "sub-1")

        mock_store.record_error.assert_awaited_once()

    async def test_retries_unavailable_when_configured(
        self, mock_store, mock_storage, mock_provider
    ):
        get_settings().extraction.retry_delay = 0
        mock_provider.extract.side_effect = [
            ExtractionServiceUnavailableError("request timed out after 90s"),
            REPLY,
        ]
        use_case = ExtractMaterialsUseCase(
            submission_store=mock_store,
            object_storage=mock_storage,
            provider=mock_provider,
            max_attempts=2,
        )

        outcome = await use_case.execute("studio-1", "sub-1")

        assert mock_provider.extract.await_count == 2
        assert outcome.result.total_materials == 2

    async def test_parse_errors_are_not_retried(self, mock_store, mock_storage, mock_provider):
        get_settings().extraction.retry_delay = 0
        mock_provider.extract.return_value = "no data"
        use_case = ExtractMaterialsUseCase(
            submission_store=mock_store,
            object_storage=mock_storage,
            provider=mock_provider,
            max_attempts=3,
        )

        with pytest.raises(NoStructuredDataFoundError):
            await use_case.execute("studio-1", "sub-1")

        assert mock_provider.extract.await_count == 1


class TestManualReply:
    async def test_saves_operator_text_without_calling_provider(
        self, use_case, mock_store, mock_provider, mock_storage
    ):
        outcome = await use_case.submit_reply("studio-1", "sub-1", REPLY)

        mock_provider.extract.assert_not_awaited()
        mock_storage.get.assert_not_called()
        mock_store.transition_status.assert_awaited_once_with(
            "studio-1", "sub-1", SubmissionStatus.PENDING, SubmissionStatus.PROCESSING
        )
        assert outcome.submission.status == SubmissionStatus.READY_FOR_REVIEW
        assert [p.name for p in outcome.pending] == ["Tile A", "Paint P1"]

    async def test_recovers_a_failing_processing_submission(self, use_case, mock_store):
        mock_store.get_submission.side_effect = [
            _submission(SubmissionStatus.PROCESSING),
            _submission(SubmissionStatus.READY_FOR_REVIEW),
        ]

        outcome = await use_case.submit_reply("studio-1", "sub-1", REPLY)

        mock_store.transition_status.assert_not_awaited()
        assert outcome.result.total_materials == 2

    async def test_unparseable_text_records_error(self, use_case, mock_store):
        with pytest.raises(NoStructuredDataFoundError):
            await use_case.submit_reply("studio-1", "sub-1", "see attached")

        error_text = mock_store.record_error.await_args.args[2]
        assert error_text.startswith("NO_STRUCTURED_DATA_FOUND:")
        mock_store.save_extraction.assert_not_awaited()

    async def test_reviewed_submission_rejects_manual_text(self, use_case, mock_store):
        mock_store.get_submission.side_effect = None
        mock_store.get_submission.return_value = _submission(SubmissionStatus.READY_FOR_REVIEW)

        with pytest.raises(InvalidStateTransitionError):
            await use_case.submit_reply("studio-1", "sub-1", REPLY)

        mock_store.save_extraction.assert_not_awaited()
