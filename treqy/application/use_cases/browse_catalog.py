"""
Browse Catalog Use Case.

Read models over submissions and the approved catalog.
"""

from treqy.core.entities.catalog import Manufacturer, Material
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.exceptions import MaterialNotFoundError, SubmissionNotFoundError
from treqy.core.interfaces import ICatalogStore, ISubmissionStore


class BrowseCatalogUseCase:
    """Use case for tenant-scoped listings."""

    def __init__(
        self,
        submission_store: ISubmissionStore | None = None,
        catalog_store: ICatalogStore | None = None,
    ):
        self._submission_store = submission_store
        self._catalog_store = catalog_store

    async def _get_submission_store(self) -> ISubmissionStore:
        if self._submission_store is None:
            from treqy.infrastructure.storage.sqlite import get_submission_store

            self._submission_store = await get_submission_store()
        return self._submission_store

    async def _get_catalog_store(self) -> ICatalogStore:
        if self._catalog_store is None:
            from treqy.infrastructure.storage.sqlite import get_catalog_store

            self._catalog_store = await get_catalog_store()
        return self._catalog_store

    async def get_submission(self, studio_id: str, submission_id: str) -> Submission:
        store = await self._get_submission_store()
        submission = await store.get_submission(studio_id, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    async def list_submissions(
        self,
        studio_id: str,
        status: SubmissionStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Submission]:
        store = await self._get_submission_store()
        return await store.list_submissions(studio_id, status=status, limit=limit, offset=offset)

    async def list_materials(
        self,
        studio_id: str,
        project_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Material]:
        store = await self._get_catalog_store()
        return await store.list_materials(studio_id, project_id=project_id, limit=limit, offset=offset)

    async def list_manufacturers(self, studio_id: str) -> list[Manufacturer]:
        store = await self._get_catalog_store()
        return await store.list_manufacturers(studio_id)

    async def get_material(self, studio_id: str, material_id: str) -> Material:
        store = await self._get_catalog_store()
        material = await store.get_material(studio_id, material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material
