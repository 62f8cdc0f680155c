"""
Abstract interfaces for tenant-scoped relational storage.

Every operation takes the studio id explicitly; implementations must filter
on it in every query.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from treqy.core.entities.catalog import Manufacturer, Material
from treqy.core.entities.extraction import PendingMaterial, PendingMaterialStatus
from treqy.core.entities.submission import Submission, SubmissionStatus


@dataclass
class ApprovalOutcome:
    """What an approval committed to the catalog."""

    materials: list[Material] = field(default_factory=list)
    manufacturers_created: list[Manufacturer] = field(default_factory=list)
    manufacturers_reused: int = 0
    linked_materials: list[Material] = field(default_factory=list)
    rejected_count: int = 0
    project_id: str | None = None


class ISubmissionStore(ABC):
    """
    Abstract interface for submission records.

    Status changes are compare-and-set: they only apply while the stored
    status still equals the expected one.
    """

    @abstractmethod
    async def create_submission(self, submission: Submission) -> Submission:
        """Insert a new submission record."""

    @abstractmethod
    async def get_submission(self, studio_id: str, submission_id: str) -> Submission | None:
        """Get a submission by ID within a studio."""

    @abstractmethod
    async def list_submissions(
        self,
        studio_id: str,
        status: SubmissionStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Submission]:
        """List a studio's submissions, newest first."""

    @abstractmethod
    async def transition_status(
        self,
        studio_id: str,
        submission_id: str,
        expected: SubmissionStatus,
        target: SubmissionStatus,
    ) -> bool:
        """
        Move expected -> target if the stored status is still expected.

        Returns:
            True if the row was updated, False if the status had changed
        """

    @abstractmethod
    async def record_error(
        self, studio_id: str, submission_id: str, error: str | None
    ) -> None:
        """Store (or clear) the diagnostic of the last failed extraction."""

    @abstractmethod
    async def save_extraction(
        self,
        studio_id: str,
        submission_id: str,
        pending: list[PendingMaterial],
    ) -> list[PendingMaterial]:
        """
        Atomically insert provisional materials and move the submission
        from processing to ready_for_review.

        Raises:
            InvalidStateTransitionError: If the submission is no longer processing
        """

    @abstractmethod
    async def reject_submission(
        self,
        studio_id: str,
        submission_id: str,
        expected: SubmissionStatus,
    ) -> int:
        """
        Atomically move expected -> rejected and discard provisional materials.

        Returns:
            Number of provisional rows discarded

        Raises:
            InvalidStateTransitionError: If the status changed concurrently
        """

    @abstractmethod
    async def delete_submission(self, studio_id: str, submission_id: str) -> int:
        """
        Delete a submission and its provisional materials.

        Approved catalog materials are kept with their provenance cleared.

        Returns:
            Number of provisional rows removed; approved rows are not counted
        """


class IPendingMaterialStore(ABC):
    """Abstract interface for provisional materials under review."""

    @abstractmethod
    async def list_pending_materials(
        self,
        studio_id: str,
        submission_id: str,
        status: PendingMaterialStatus | None = None,
    ) -> list[PendingMaterial]:
        """List a submission's provisional materials in extraction order."""

    @abstractmethod
    async def get_pending_material(
        self, studio_id: str, pending_id: str
    ) -> PendingMaterial | None:
        """Get a provisional material by ID."""

    @abstractmethod
    async def update_pending_material(self, pending: PendingMaterial) -> PendingMaterial:
        """Persist operator edits to a provisional material."""


class ICatalogStore(ABC):
    """Abstract interface for the durable material catalog."""

    @abstractmethod
    async def approve_submission(
        self,
        studio_id: str,
        submission_id: str,
        pending_ids: list[str] | None = None,
        project_id: str | None = None,
        links: dict[str, str] | None = None,
    ) -> ApprovalOutcome:
        """
        Atomically commit provisional materials and complete the submission.

        Rows named in links are attached to the given existing material
        instead of creating a new one.

        Raises:
            InvalidStateTransitionError: If the submission is not ready_for_review
            MaterialNotFoundError: If a link target is not in the studio's catalog
        """

    @abstractmethod
    async def find_duplicates(
        self, studio_id: str, submission_id: str
    ) -> dict[str, list[Material]]:
        """
        Catalog materials that already match a submission's pending rows.

        A match has the same reference SKU and the same manufacturer name,
        compared case-insensitively.

        Returns:
            Matches keyed by pending material id; rows without matches are absent
        """

    @abstractmethod
    async def get_material(self, studio_id: str, material_id: str) -> Material | None:
        """Get a catalog material by ID."""

    @abstractmethod
    async def list_materials(
        self,
        studio_id: str,
        project_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Material]:
        """List catalog materials, optionally limited to one project."""

    @abstractmethod
    async def list_manufacturers(self, studio_id: str) -> list[Manufacturer]:
        """List a studio's manufacturers by name."""
