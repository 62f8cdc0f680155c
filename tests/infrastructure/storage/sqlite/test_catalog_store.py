"""Tests for SQLiteCatalogStore approval and listings."""

import asyncio

import pytest
import pytest_asyncio

from treqy.core.entities.extraction import PendingMaterialStatus
from treqy.core.entities.submission import SubmissionStatus
from treqy.core.exceptions import (
    InvalidStateTransitionError,
    MaterialNotFoundError,
    PendingMaterialNotFoundError,
    SubmissionNotFoundError,
)

STUDIO = "studio-1"


class TestApproveSubmission:
    async def test_approve_all(self, catalog_store, submission_store, pending_store, ready_submission):
        outcome = await catalog_store.approve_submission(STUDIO, ready_submission.id)

        assert len(outcome.materials) == 3
        assert outcome.project_id == "project-1"
        assert outcome.rejected_count == 0
        # "Acme Tile" and "ACME  tile" resolve to one manufacturer
        assert [m.name for m in outcome.manufacturers_created] == ["Acme Tile"]
        assert outcome.manufacturers_reused == 0

        by_name = {m.name: m for m in outcome.materials}
        assert by_name["Tile A"].manufacturer_id == by_name["Tile B"].manufacturer_id
        assert by_name["Paint P1"].manufacturer_id is None

        submission = await submission_store.get_submission(STUDIO, ready_submission.id)
        assert submission.status == SubmissionStatus.COMPLETED

        rows = await pending_store.list_pending_materials(STUDIO, ready_submission.id)
        assert all(r.status == PendingMaterialStatus.APPROVED for r in rows)
        assert all(r.material_id and r.approved_at for r in rows)

    async def test_reuses_existing_manufacturer(
        self, catalog_store, submission_store, ready_submission, make_submission, make_pending
    ):
        await catalog_store.approve_submission(STUDIO, ready_submission.id)

        second = await submission_store.create_submission(make_submission())
        await submission_store.transition_status(
            STUDIO, second.id, SubmissionStatus.PENDING, SubmissionStatus.PROCESSING
        )
        await submission_store.save_extraction(
            STUDIO, second.id, [make_pending(second.id, "Tile C", "acme tile")]
        )

        outcome = await catalog_store.approve_submission(STUDIO, second.id)

        assert outcome.manufacturers_created == []
        assert outcome.manufacturers_reused == 1
        assert len(await catalog_store.list_manufacturers(STUDIO)) == 1

    async def test_partial_selection_rejects_the_rest(
        self, catalog_store, pending_store, ready_submission
    ):
        rows = await pending_store.list_pending_materials(STUDIO, ready_submission.id)

        outcome = await catalog_store.approve_submission(
            STUDIO, ready_submission.id, pending_ids=[rows[0].id], project_id="project-9"
        )

        assert [m.name for m in outcome.materials] == ["Tile A"]
        assert outcome.materials[0].project_ids == ["project-9"]
        assert outcome.rejected_count == 2

        statuses = {
            r.name: r.status
            for r in await pending_store.list_pending_materials(STUDIO, ready_submission.id)
        }
        assert statuses == {
            "Tile A": PendingMaterialStatus.APPROVED,
            "Tile B": PendingMaterialStatus.REJECTED,
            "Paint P1": PendingMaterialStatus.REJECTED,
        }

    async def test_unknown_pending_id_rolls_back(
        self, catalog_store, submission_store, ready_submission
    ):
        with pytest.raises(PendingMaterialNotFoundError):
            await catalog_store.approve_submission(
                STUDIO, ready_submission.id, pending_ids=["nope"]
            )

        submission = await submission_store.get_submission(STUDIO, ready_submission.id)
        assert submission.status == SubmissionStatus.READY_FOR_REVIEW
        assert await catalog_store.list_materials(STUDIO) == []

    async def test_approve_twice_conflicts(self, catalog_store, ready_submission):
        await catalog_store.approve_submission(STUDIO, ready_submission.id)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await catalog_store.approve_submission(STUDIO, ready_submission.id)

        assert exc_info.value.current == "completed"
        assert len(await catalog_store.list_materials(STUDIO)) == 3

    async def test_approve_unknown_submission(self, catalog_store, db_pool):
        with pytest.raises(SubmissionNotFoundError):
            await catalog_store.approve_submission(STUDIO, "missing")

    async def test_approve_and_reject_race(
        self, catalog_store, submission_store, pending_store, ready_submission
    ):
        results = await asyncio.gather(
            catalog_store.approve_submission(STUDIO, ready_submission.id),
            submission_store.reject_submission(
                STUDIO, ready_submission.id, SubmissionStatus.READY_FOR_REVIEW
            ),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, InvalidStateTransitionError)]
        assert len(conflicts) == 1

        submission = await submission_store.get_submission(STUDIO, ready_submission.id)
        materials = await catalog_store.list_materials(STUDIO)
        if submission.status == SubmissionStatus.COMPLETED:
            assert len(materials) == 3
        else:
            assert submission.status == SubmissionStatus.REJECTED
            assert materials == []
            assert await pending_store.list_pending_materials(STUDIO, ready_submission.id) == []


class TestCatalogListings:
    async def test_list_materials_by_project(self, catalog_store, pending_store, ready_submission):
        rows = await pending_store.list_pending_materials(STUDIO, ready_submission.id)
        await catalog_store.approve_submission(
            STUDIO, ready_submission.id, pending_ids=[rows[0].id, rows[1].id]
        )

        in_project = await catalog_store.list_materials(STUDIO, project_id="project-1")
        elsewhere = await catalog_store.list_materials(STUDIO, project_id="project-2")

        assert [m.name for m in in_project] == ["Tile A", "Tile B"]
        assert elsewhere == []
        assert await catalog_store.list_materials("studio-2") == []

    async def test_get_material(self, catalog_store, ready_submission):
        outcome = await catalog_store.approve_submission(STUDIO, ready_submission.id)

        material = await catalog_store.get_material(STUDIO, outcome.materials[0].id)

        assert material.name == "Tile A"
        assert material.project_ids == ["project-1"]
        assert await catalog_store.get_material("studio-2", material.id) is None
        assert await catalog_store.get_material(STUDIO, "missing") is None

    async def test_deleting_submission_keeps_catalog(
        self, catalog_store, submission_store, ready_submission
    ):
        outcome = await catalog_store.approve_submission(STUDIO, ready_submission.id)

        await submission_store.delete_submission(STUDIO, ready_submission.id)

        material = await catalog_store.get_material(STUDIO, outcome.materials[0].id)
        assert material is not None
        assert material.submission_id is None


async def _ready_with(submission_store, make_submission, rows_factory):
    submission = await submission_store.create_submission(make_submission())
    await submission_store.transition_status(
        STUDIO, submission.id, SubmissionStatus.PENDING, SubmissionStatus.PROCESSING
    )
    await submission_store.save_extraction(STUDIO, submission.id, rows_factory(submission.id))
    return submission


class TestDuplicateLinks:
    @pytest_asyncio.fixture
    async def existing(self, catalog_store, submission_store, make_submission, make_pending):
        first = await _ready_with(
            submission_store,
            make_submission,
            lambda sid: [make_pending(sid, "Porcelain", "Acme Tile", 0, reference_sku="AC-600")],
        )
        outcome = await catalog_store.approve_submission(STUDIO, first.id)
        return outcome.materials[0]

    @pytest_asyncio.fixture
    async def second(self, existing, submission_store, make_submission, make_pending):
        return await _ready_with(
            submission_store,
            make_submission,
            lambda sid: [
                make_pending(sid, "Porcelain again", " acme  TILE", 0, reference_sku="AC-600"),
                make_pending(sid, "Other brand", "Other Co", 1, reference_sku="AC-600"),
                make_pending(sid, "No SKU", "Acme Tile", 2),
                make_pending(sid, "New SKU", "Acme Tile", 3, reference_sku="AC-700"),
            ],
        )

    async def test_find_duplicates_matches_sku_and_manufacturer(
        self, catalog_store, pending_store, existing, second
    ):
        rows = await pending_store.list_pending_materials(STUDIO, second.id)

        matches = await catalog_store.find_duplicates(STUDIO, second.id)

        assert list(matches) == [rows[0].id]
        assert [m.id for m in matches[rows[0].id]] == [existing.id]
        assert matches[rows[0].id][0].project_ids == ["project-1"]
        assert await catalog_store.find_duplicates("studio-2", second.id) == {}

    async def test_linked_row_reuses_existing_material(
        self, catalog_store, pending_store, existing, second
    ):
        rows = await pending_store.list_pending_materials(STUDIO, second.id)

        outcome = await catalog_store.approve_submission(
            STUDIO, second.id, project_id="project-2", links={rows[0].id: existing.id}
        )

        assert [m.id for m in outcome.linked_materials] == [existing.id]
        assert outcome.linked_materials[0].project_ids == ["project-1", "project-2"]
        assert [m.name for m in outcome.materials] == ["Other brand", "No SKU", "New SKU"]
        assert len(await catalog_store.list_materials(STUDIO)) == 4

        in_project = await catalog_store.list_materials(STUDIO, project_id="project-2")
        assert "Porcelain" in [m.name for m in in_project]

        linked_row = (await pending_store.list_pending_materials(STUDIO, second.id))[0]
        assert linked_row.status == PendingMaterialStatus.APPROVED
        assert linked_row.material_id == existing.id

    async def test_linked_row_is_committed_outside_selection(
        self, catalog_store, pending_store, existing, second
    ):
        rows = await pending_store.list_pending_materials(STUDIO, second.id)

        outcome = await catalog_store.approve_submission(
            STUDIO, second.id, pending_ids=[rows[1].id], links={rows[0].id: existing.id}
        )

        assert [m.name for m in outcome.materials] == ["Other brand"]
        assert len(outcome.linked_materials) == 1
        assert outcome.rejected_count == 2

    async def test_unknown_link_target_rolls_back(
        self, catalog_store, submission_store, pending_store, existing, second
    ):
        rows = await pending_store.list_pending_materials(STUDIO, second.id)

        with pytest.raises(MaterialNotFoundError):
            await catalog_store.approve_submission(
                STUDIO, second.id, links={rows[0].id: "missing"}
            )

        submission = await submission_store.get_submission(STUDIO, second.id)
        assert submission.status == SubmissionStatus.READY_FOR_REVIEW
        assert [m.id for m in await catalog_store.list_materials(STUDIO)] == [existing.id]

    async def test_link_for_unknown_pending_row(self, catalog_store, existing, second):
        with pytest.raises(PendingMaterialNotFoundError):
            await catalog_store.approve_submission(STUDIO, second.id, links={"nope": existing.id})
