"""
Review Submission Use Case.

Operator review of provisional materials: list, correct, then approve into
the catalog or reject the whole submission.
"""

from treqy.application.dto.requests import ApproveSubmissionRequest, EditPendingMaterialRequest
from treqy.config import get_logger
from treqy.core.entities.catalog import Material
from treqy.core.entities.extraction import (
    UNSPECIFIED_MANUFACTURER,
    PendingMaterial,
    PendingMaterialStatus,
)
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.exceptions import (
    PendingMaterialNotFoundError,
    SubmissionNotEditableError,
    SubmissionNotFoundError,
)
from treqy.core.interfaces import (
    ApprovalOutcome,
    ICatalogStore,
    IPendingMaterialStore,
    ISubmissionStore,
)

logger = get_logger(__name__)

# Fields that may be cleared by sending a blank value
_OPTIONAL_FIELDS = ("tag", "subcategory", "location", "reference_sku", "dimensions", "notes")


class ReviewSubmissionUseCase:
    """Use case for reviewing a submission's extracted materials."""

    def __init__(
        self,
        submission_store: ISubmissionStore | None = None,
        pending_store: IPendingMaterialStore | None = None,
        catalog_store: ICatalogStore | None = None,
    ):
        self._submission_store = submission_store
        self._pending_store = pending_store
        self._catalog_store = catalog_store

    async def _get_submission_store(self) -> ISubmissionStore:
        if self._submission_store is None:
            from treqy.infrastructure.storage.sqlite import get_submission_store

            self._submission_store = await get_submission_store()
        return self._submission_store

    async def _get_pending_store(self) -> IPendingMaterialStore:
        if self._pending_store is None:
            from treqy.infrastructure.storage.sqlite import get_pending_material_store

            self._pending_store = await get_pending_material_store()
        return self._pending_store

    async def _get_catalog_store(self) -> ICatalogStore:
        if self._catalog_store is None:
            from treqy.infrastructure.storage.sqlite import get_catalog_store

            self._catalog_store = await get_catalog_store()
        return self._catalog_store

    async def _load_submission(self, studio_id: str, submission_id: str) -> Submission:
        store = await self._get_submission_store()
        submission = await store.get_submission(studio_id, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    async def list_pending_materials(
        self,
        studio_id: str,
        submission_id: str,
        status: PendingMaterialStatus | None = None,
    ) -> list[PendingMaterial]:
        """List a submission's provisional materials in extraction order."""
        await self._load_submission(studio_id, submission_id)
        pending_store = await self._get_pending_store()
        return await pending_store.list_pending_materials(studio_id, submission_id, status)

    async def find_duplicates(
        self, studio_id: str, submission_id: str
    ) -> dict[str, list[Material]]:
        """
        Existing catalog materials each pending row would duplicate.

        The operator can pass a match back in ApproveSubmissionRequest.links
        to link the row to it instead of creating a second copy.
        """
        await self._load_submission(studio_id, submission_id)
        catalog_store = await self._get_catalog_store()
        return await catalog_store.find_duplicates(studio_id, submission_id)

    async def edit_pending_material(
        self,
        studio_id: str,
        submission_id: str,
        pending_id: str,
        changes: EditPendingMaterialRequest,
    ) -> PendingMaterial:
        """
        Apply operator corrections to one provisional row.

        Raises:
            SubmissionNotEditableError: Submission is not ready_for_review
            PendingMaterialNotFoundError: Row is missing, belongs to another
                submission, or was already decided
        """
        submission = await self._load_submission(studio_id, submission_id)
        if submission.status != SubmissionStatus.READY_FOR_REVIEW:
            raise SubmissionNotEditableError(submission_id, submission.status.value)

        pending_store = await self._get_pending_store()
        pending = await pending_store.get_pending_material(studio_id, pending_id)
        if (
            pending is None
            or pending.submission_id != submission_id
            or pending.status != PendingMaterialStatus.PENDING
        ):
            raise PendingMaterialNotFoundError(pending_id, submission_id)

        updates = changes.model_dump(exclude_unset=True)
        for key, value in updates.items():
            if isinstance(value, str):
                value = value.strip()
            if key in _OPTIONAL_FIELDS:
                value = value or None
            elif key == "manufacturer_name":
                value = value or UNSPECIFIED_MANUFACTURER
            elif not value:
                # name and category cannot be cleared
                continue
            setattr(pending, key, value)

        pending = await pending_store.update_pending_material(pending)
        logger.info(
            "pending_material_edited",
            submission_id=submission_id,
            pending_id=pending_id,
            fields=sorted(updates),
        )
        return pending

    async def approve(
        self,
        studio_id: str,
        submission_id: str,
        request: ApproveSubmissionRequest | None = None,
    ) -> ApprovalOutcome:
        """
        Commit provisional materials into the catalog.

        Raises:
            SubmissionNotFoundError: Unknown submission for this studio
            InvalidStateTransitionError: Not ready_for_review (including a
                concurrent approve or reject that won)
            PendingMaterialNotFoundError: A selected or linked row is not pending
            MaterialNotFoundError: A link target is not in the catalog
        """
        request = request or ApproveSubmissionRequest()
        submission = await self._load_submission(studio_id, submission_id)
        submission.ensure_can_transition_to(SubmissionStatus.COMPLETED)

        catalog_store = await self._get_catalog_store()
        return await catalog_store.approve_submission(
            studio_id,
            submission_id,
            pending_ids=request.pending_ids,
            project_id=request.project_id,
            links=request.links,
        )

    async def reject(self, studio_id: str, submission_id: str) -> int:
        """
        Reject a submission and discard its provisional materials.

        Allowed from pending, processing (abandonment) and ready_for_review.

        Returns:
            Number of provisional rows discarded
        """
        submission = await self._load_submission(studio_id, submission_id)
        submission.ensure_can_transition_to(SubmissionStatus.REJECTED)

        store = await self._get_submission_store()
        return await store.reject_submission(studio_id, submission_id, submission.status)
