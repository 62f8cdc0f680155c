"""Pytest configuration and fixtures."""

import os
import tempfile

# Keep the app's data directory out of the working tree
os.environ.setdefault("STORAGE_DATA_DIR", tempfile.mkdtemp(prefix="treqy-test-"))

from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402
from contextlib import ExitStack  # noqa: E402
from pathlib import Path  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from treqy.config import reset_settings  # noqa: E402
from treqy.core.entities.extraction import PendingMaterial  # noqa: E402
from treqy.core.entities.submission import Submission, SubmissionStatus  # noqa: E402
from treqy.infrastructure.storage.sqlite import (  # noqa: E402
    ConnectionPool,
    SQLiteCatalogStore,
    SQLitePendingMaterialStore,
    SQLiteSubmissionStore,
)
from treqy.infrastructure.storage.sqlite.migrations import initialize_database  # noqa: E402

STUDIO_ID = "studio-1"

SAMPLE_PDF = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer\n%%EOF\n"

_STORE_MODULES = [
    "treqy.infrastructure.storage.sqlite.submission_store",
    "treqy.infrastructure.storage.sqlite.pending_material_store",
    "treqy.infrastructure.storage.sqlite.catalog_store",
]


@pytest.fixture(autouse=True)
def _reset_singletons() -> Generator[None, None, None]:
    """Drop cached settings and singletons between tests."""
    yield
    from treqy.infrastructure.llm import reset_openrouter_provider
    from treqy.infrastructure.storage.local_objects import reset_object_storage

    reset_settings()
    reset_openrouter_provider()
    reset_object_storage()


@pytest.fixture
def sample_pdf() -> bytes:
    """Minimal bytes that pass PDF sniffing."""
    return SAMPLE_PDF


@pytest.fixture
def studio_id() -> str:
    return STUDIO_ID


@pytest_asyncio.fixture
async def db_pool(tmp_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """
    Migrated temporary database wired into the SQLite stores.

    The stores' module-level get_connection/get_transaction are patched to
    draw from this pool instead of the global one.
    """
    db_path = tmp_path / "test.db"
    results = await initialize_database(db_path, create_backup_before=False)
    assert results and all(r.success for r in results)

    pool = ConnectionPool(db_path, pool_size=3, busy_timeout=5000)
    await pool.initialize()

    with ExitStack() as stack:
        for module in _STORE_MODULES:
            stack.enter_context(
                patch(f"{module}.get_connection", side_effect=lambda: pool.acquire())
            )
            stack.enter_context(
                patch(
                    f"{module}.get_transaction",
                    side_effect=lambda immediate=False: pool.transaction(immediate=immediate),
                )
            )
        yield pool

    await pool.close()


@pytest.fixture
def submission_store(db_pool: ConnectionPool) -> SQLiteSubmissionStore:
    return SQLiteSubmissionStore()


@pytest.fixture
def pending_store(db_pool: ConnectionPool) -> SQLitePendingMaterialStore:
    return SQLitePendingMaterialStore()


@pytest.fixture
def catalog_store(db_pool: ConnectionPool) -> SQLiteCatalogStore:
    return SQLiteCatalogStore()


@pytest.fixture
def make_submission() -> Callable[..., Submission]:
    """Factory for unsaved submissions."""

    def _make(studio_id: str = STUDIO_ID, **overrides) -> Submission:
        values = {
            "studio_id": studio_id,
            "project_id": "project-1",
            "file_name": "finish_schedule.pdf",
            "file_size": len(SAMPLE_PDF),
            "object_path": f"{studio_id}/sub/finish_schedule.pdf",
        }
        values.update(overrides)
        return Submission(**values)

    return _make


@pytest.fixture
def make_pending() -> Callable[..., PendingMaterial]:
    """Factory for unsaved provisional materials."""

    def _make(
        submission_id: str,
        name: str,
        manufacturer_name: str = "Acme Tile",
        position: int = 0,
        studio_id: str = STUDIO_ID,
        **overrides,
    ) -> PendingMaterial:
        return PendingMaterial(
            studio_id=studio_id,
            submission_id=submission_id,
            manufacturer_name=manufacturer_name,
            position=position,
            name=name,
            category=overrides.pop("category", "Tile"),
            **overrides,
        )

    return _make


@pytest_asyncio.fixture
async def ready_submission(
    submission_store: SQLiteSubmissionStore,
    make_submission: Callable[..., Submission],
    make_pending: Callable[..., PendingMaterial],
) -> Submission:
    """A stored submission in ready_for_review with three provisional rows."""
    submission = await submission_store.create_submission(make_submission())
    await submission_store.transition_status(
        STUDIO_ID, submission.id, SubmissionStatus.PENDING, SubmissionStatus.PROCESSING
    )
    await submission_store.save_extraction(
        STUDIO_ID,
        submission.id,
        [
            make_pending(submission.id, "Tile A", "Acme Tile", 0, tag="T-1"),
            make_pending(submission.id, "Tile B", "ACME  tile", 1, tag="T-2"),
            make_pending(
                submission.id, "Paint P1", "UNSPECIFIED MANUFACTURER", 2, category="Paint"
            ),
        ],
    )
    return await submission_store.get_submission(STUDIO_ID, submission.id)
