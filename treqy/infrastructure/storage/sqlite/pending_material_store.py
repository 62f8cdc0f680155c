"""
SQLite implementation of provisional material storage.
"""

import uuid
from datetime import UTC, datetime

import aiosqlite

from treqy.config import get_logger
from treqy.core.entities.extraction import PendingMaterial, PendingMaterialStatus
from treqy.core.exceptions import PendingMaterialNotFoundError, PersistenceFailureError
from treqy.core.interfaces.storage import IPendingMaterialStore
from treqy.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


async def insert_pending_material(
    conn: aiosqlite.Connection, pending: PendingMaterial
) -> PendingMaterial:
    """Insert one provisional material on an open connection."""
    if not pending.id:
        pending.id = str(uuid.uuid4())
    await conn.execute(
        """
        INSERT INTO pending_materials (
            id, studio_id, submission_id, manufacturer_name, position, name, tag,
            category, subcategory, location, reference_sku, dimensions, notes,
            status, material_id, created_at, updated_at, approved_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            pending.id,
            pending.studio_id,
            pending.submission_id,
            pending.manufacturer_name,
            pending.position,
            pending.name,
            pending.tag,
            pending.category,
            pending.subcategory,
            pending.location,
            pending.reference_sku,
            pending.dimensions,
            pending.notes,
            pending.status.value,
            pending.material_id,
            pending.created_at.isoformat(),
            pending.updated_at.isoformat(),
            pending.approved_at.isoformat() if pending.approved_at else None,
        ),
    )
    return pending


def row_to_pending_material(row: aiosqlite.Row) -> PendingMaterial:
    """Convert database row to PendingMaterial entity."""
    return PendingMaterial(
        id=row["id"],
        studio_id=row["studio_id"],
        submission_id=row["submission_id"],
        manufacturer_name=row["manufacturer_name"],
        position=row["position"],
        name=row["name"],
        tag=row["tag"],
        category=row["category"],
        subcategory=row["subcategory"],
        location=row["location"],
        reference_sku=row["reference_sku"],
        dimensions=row["dimensions"],
        notes=row["notes"],
        status=PendingMaterialStatus(row["status"]),
        material_id=row["material_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        approved_at=datetime.fromisoformat(row["approved_at"]) if row["approved_at"] else None,
    )


class SQLitePendingMaterialStore(IPendingMaterialStore):
    """SQLite implementation of provisional material storage."""

    async def list_pending_materials(
        self,
        studio_id: str,
        submission_id: str,
        status: PendingMaterialStatus | None = None,
    ) -> list[PendingMaterial]:
        """List a submission's provisional materials in extraction order."""
        async with get_connection() as conn:
            if status:
                cursor = await conn.execute(
                    """
                    SELECT * FROM pending_materials
                    WHERE studio_id = ? AND submission_id = ? AND status = ?
                    ORDER BY position
                    """,
                    (studio_id, submission_id, status.value),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM pending_materials
                    WHERE studio_id = ? AND submission_id = ?
                    ORDER BY position
                    """,
                    (studio_id, submission_id),
                )
            rows = await cursor.fetchall()
            return [row_to_pending_material(row) for row in rows]

    async def get_pending_material(
        self, studio_id: str, pending_id: str
    ) -> PendingMaterial | None:
        """Get a provisional material by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM pending_materials WHERE id = ? AND studio_id = ?",
                (pending_id, studio_id),
            )
            row = await cursor.fetchone()
            return row_to_pending_material(row) if row else None

    async def update_pending_material(self, pending: PendingMaterial) -> PendingMaterial:
        """Persist operator edits; only rows still pending can change."""
        pending.updated_at = datetime.now(UTC)
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE pending_materials
                    SET manufacturer_name = ?, name = ?, tag = ?, category = ?,
                        subcategory = ?, location = ?, reference_sku = ?,
                        dimensions = ?, notes = ?, updated_at = ?
                    WHERE id = ? AND studio_id = ? AND status = 'pending'
                    """,
                    (
                        pending.manufacturer_name,
                        pending.name,
                        pending.tag,
                        pending.category,
                        pending.subcategory,
                        pending.location,
                        pending.reference_sku,
                        pending.dimensions,
                        pending.notes,
                        pending.updated_at.isoformat(),
                        pending.id,
                        pending.studio_id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise PendingMaterialNotFoundError(pending.id, pending.submission_id)
        except aiosqlite.Error as e:
            raise PersistenceFailureError("update_pending_material", str(e)) from e

        logger.info(
            "pending_material_updated",
            pending_id=pending.id,
            submission_id=pending.submission_id,
        )
        return pending
