"""Unit tests for ReviewSubmissionUseCase and DeleteSubmissionUseCase."""

from unittest.mock import AsyncMock, Mock

import pytest

from treqy.application.dto.requests import ApproveSubmissionRequest, EditPendingMaterialRequest
from treqy.application.use_cases.delete_submission import DeleteSubmissionUseCase
from treqy.application.use_cases.review_submission import ReviewSubmissionUseCase
from treqy.core.entities.catalog import Material
from treqy.core.entities.extraction import (
    UNSPECIFIED_MANUFACTURER,
    PendingMaterial,
    PendingMaterialStatus,
)
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.exceptions import (
    InvalidStateTransitionError,
    PendingMaterialNotFoundError,
    StorageFailureError,
    SubmissionNotEditableError,
    SubmissionNotFoundError,
)
from treqy.core.interfaces import ApprovalOutcome


def _submission(status: SubmissionStatus = SubmissionStatus.READY_FOR_REVIEW) -> Submission:
    return Submission(
        id="sub-1",
        studio_id="studio-1",
        file_name="a.pdf",
        object_path="studio-1/sub-1/a.pdf",
        status=status,
    )


def _pending(**overrides) -> PendingMaterial:
    values = {
        "id": "pm-1",
        "studio_id": "studio-1",
        "submission_id": "sub-1",
        "manufacturer_name": "Acme",
        "name": "Tile A",
        "tag": "T-1",
        "category": "Tile",
        "notes": "Matte",
    }
    values.update(overrides)
    return PendingMaterial(**values)


@pytest.fixture
def mock_submission_store():
    store = AsyncMock()
    store.get_submission = AsyncMock(return_value=_submission())
    store.reject_submission = AsyncMock(return_value=3)
    return store


@pytest.fixture
def mock_pending_store():
    store = AsyncMock()
    store.get_pending_material = AsyncMock(return_value=_pending())
    store.update_pending_material = AsyncMock(side_effect=lambda pending: pending)
    store.list_pending_materials = AsyncMock(return_value=[_pending()])
    return store


@pytest.fixture
def mock_catalog_store():
    store = AsyncMock()
    store.approve_submission = AsyncMock(return_value=ApprovalOutcome(project_id="p-1"))
    return store


@pytest.fixture
def use_case(mock_submission_store, mock_pending_store, mock_catalog_store):
    return ReviewSubmissionUseCase(
        submission_store=mock_submission_store,
        pending_store=mock_pending_store,
        catalog_store=mock_catalog_store,
    )


class TestEditPendingMaterial:
    async def test_applies_only_set_fields(self, use_case):
        updated = await use_case.edit_pending_material(
            "studio-1",
            "sub-1",
            "pm-1",
            EditPendingMaterialRequest(name=" Tile A2 ", notes=""),
        )

        assert updated.name == "Tile A2"
        assert updated.notes is None
        assert updated.tag == "T-1"
        assert updated.category == "Tile"

    async def test_blank_manufacturer_becomes_sentinel(self, use_case):
        updated = await use_case.edit_pending_material(
            "studio-1",
            "sub-1",
            "pm-1",
            EditPendingMaterialRequest(manufacturer_name="   "),
        )
        assert updated.manufacturer_name == UNSPECIFIED_MANUFACTURER

    async def test_not_editable_outside_review(self, use_case, mock_submission_store):
        mock_submission_store.get_submission.return_value = _submission(SubmissionStatus.COMPLETED)

        with pytest.raises(SubmissionNotEditableError):
            await use_case.edit_pending_material(
                "studio-1", "sub-1", "pm-1", EditPendingMaterialRequest(name="X")
            )

    @pytest.mark.parametrize(
        "pending",
        [
            None,
            _pending(submission_id="sub-2"),
            _pending(status=PendingMaterialStatus.REJECTED),
        ],
    )
    async def test_row_must_be_pending_on_this_submission(
        self, use_case, mock_pending_store, pending
    ):
        mock_pending_store.get_pending_material.return_value = pending

        with pytest.raises(PendingMaterialNotFoundError):
            await use_case.edit_pending_material(
                "studio-1", "sub-1", "pm-1", EditPendingMaterialRequest(name="X")
            )

        mock_pending_store.update_pending_material.assert_not_awaited()


class TestApproveAndReject:
    async def test_approve_passes_selection(self, use_case, mock_catalog_store):
        outcome = await use_case.approve(
            "studio-1",
            "sub-1",
            ApproveSubmissionRequest(pending_ids=["pm-1"], project_id="p-2"),
        )

        assert outcome.project_id == "p-1"
        mock_catalog_store.approve_submission.assert_awaited_once_with(
            "studio-1", "sub-1", pending_ids=["pm-1"], project_id="p-2", links=None
        )

    async def test_approve_forwards_links(self, use_case, mock_catalog_store):
        await use_case.approve(
            "studio-1",
            "sub-1",
            ApproveSubmissionRequest(links={"pm-1": "mat-9"}),
        )

        kwargs = mock_catalog_store.approve_submission.await_args.kwargs
        assert kwargs["links"] == {"pm-1": "mat-9"}
        assert kwargs["pending_ids"] is None

    async def test_find_duplicates_passes_through(self, use_case, mock_catalog_store):
        existing = Material(id="mat-9", studio_id="studio-1", name="Tile A", category="Tile")
        mock_catalog_store.find_duplicates = AsyncMock(return_value={"pm-1": [existing]})

        matches = await use_case.find_duplicates("studio-1", "sub-1")

        assert matches == {"pm-1": [existing]}
        mock_catalog_store.find_duplicates.assert_awaited_once_with("studio-1", "sub-1")

    async def test_find_duplicates_unknown_submission(
        self, use_case, mock_submission_store, mock_catalog_store
    ):
        mock_submission_store.get_submission.return_value = None
        mock_catalog_store.find_duplicates = AsyncMock()

        with pytest.raises(SubmissionNotFoundError):
            await use_case.find_duplicates("studio-1", "sub-1")

        mock_catalog_store.find_duplicates.assert_not_awaited()

    async def test_approve_requires_review(
        self, use_case, mock_submission_store, mock_catalog_store
    ):
        mock_submission_store.get_submission.return_value = _submission(SubmissionStatus.PENDING)

        with pytest.raises(InvalidStateTransitionError):
            await use_case.approve("studio-1", "sub-1")

        mock_catalog_store.approve_submission.assert_not_awaited()

    async def test_reject_uses_current_status(self, use_case, mock_submission_store):
        mock_submission_store.get_submission.return_value = _submission(SubmissionStatus.PROCESSING)

        discarded = await use_case.reject("studio-1", "sub-1")

        assert discarded == 3
        mock_submission_store.reject_submission.assert_awaited_once_with(
            "studio-1", "sub-1", SubmissionStatus.PROCESSING
        )

    async def test_reject_completed_conflicts(self, use_case, mock_submission_store):
        mock_submission_store.get_submission.return_value = _submission(SubmissionStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionError):
            await use_case.reject("studio-1", "sub-1")

    async def test_list_unknown_submission(self, use_case, mock_submission_store):
        mock_submission_store.get_submission.return_value = None

        with pytest.raises(SubmissionNotFoundError):
            await use_case.list_pending_materials("studio-1", "sub-1")


class TestDeleteSubmissionUseCase:
    @pytest.fixture
    def mock_storage(self):
        storage = Mock()
        storage.delete = AsyncMock()
        return storage

    async def test_deletes_record_then_object(self, mock_submission_store, mock_storage):
        mock_submission_store.delete_submission = AsyncMock(return_value=2)
        use_case = DeleteSubmissionUseCase(mock_submission_store, mock_storage)

        result = await use_case.execute("studio-1", "sub-1")

        assert result.discarded_materials == 2
        assert result.orphaned_object_path is None
        mock_storage.delete.assert_awaited_once_with("studio-1/sub-1/a.pdf")

    async def test_object_failure_reports_orphan(self, mock_submission_store, mock_storage):
        mock_submission_store.delete_submission = AsyncMock(return_value=0)
        mock_storage.delete.side_effect = StorageFailureError("delete", "x", "permission denied")
        use_case = DeleteSubmissionUseCase(mock_submission_store, mock_storage)

        result = await use_case.execute("studio-1", "sub-1")

        assert result.orphaned_object_path == "studio-1/sub-1/a.pdf"
        mock_submission_store.delete_submission.assert_awaited_once()

    async def test_unknown_submission(self, mock_submission_store, mock_storage):
        mock_submission_store.get_submission.return_value = None
        use_case = DeleteSubmissionUseCase(mock_submission_store, mock_storage)

        with pytest.raises(SubmissionNotFoundError):
            await use_case.execute("studio-1", "missing")

        mock_storage.delete.assert_not_awaited()
