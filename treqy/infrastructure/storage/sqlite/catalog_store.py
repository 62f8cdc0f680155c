"""
SQLite implementation of the durable material catalog.

Approval commits a submission's provisional rows into materials,
manufacturers and project links in a single transaction.
"""

import uuid
from datetime import UTC, datetime

import aiosqlite

from treqy.config import get_logger
from treqy.core.entities.catalog import Manufacturer, Material, normalize_name
from treqy.core.entities.extraction import UNSPECIFIED_MANUFACTURER, PendingMaterial
from treqy.core.entities.submission import SubmissionStatus
from treqy.core.exceptions import (
    MaterialNotFoundError,
    PendingMaterialNotFoundError,
    PersistenceFailureError,
    SubmissionNotFoundError,
)
from treqy.core.interfaces.storage import ApprovalOutcome, ICatalogStore
from treqy.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from treqy.infrastructure.storage.sqlite.pending_material_store import row_to_pending_material
from treqy.infrastructure.storage.sqlite.submission_store import compare_and_set_status

logger = get_logger(__name__)


def _generate_id() -> str:
    """Generate a new UUID text ID."""
    return str(uuid.uuid4())


class SQLiteCatalogStore(ICatalogStore):
    """SQLite implementation of the material catalog."""

    async def approve_submission(
        self,
        studio_id: str,
        submission_id: str,
        pending_ids: list[str] | None = None,
        project_id: str | None = None,
        links: dict[str, str] | None = None,
    ) -> ApprovalOutcome:
        """Commit provisional materials and move ready_for_review -> completed."""
        links = links or {}
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    "SELECT project_id FROM submissions WHERE id = ? AND studio_id = ?",
                    (submission_id, studio_id),
                )
                row = await cursor.fetchone()
                if row is None:
                    raise SubmissionNotFoundError(submission_id)

                await compare_and_set_status(
                    conn,
                    studio_id,
                    submission_id,
                    SubmissionStatus.READY_FOR_REVIEW,
                    SubmissionStatus.COMPLETED,
                )

                outcome = ApprovalOutcome(project_id=project_id or row["project_id"])

                cursor = await conn.execute(
                    """
                    SELECT * FROM pending_materials
                    WHERE studio_id = ? AND submission_id = ? AND status = 'pending'
                    ORDER BY position
                    """,
                    (studio_id, submission_id),
                )
                pending = [row_to_pending_material(r) for r in await cursor.fetchall()]

                by_id = {p.id: p for p in pending}
                for pending_id in [*(pending_ids or []), *links]:
                    if pending_id not in by_id:
                        raise PendingMaterialNotFoundError(pending_id, submission_id)

                if pending_ids is None:
                    selected = pending
                else:
                    # Linked rows are committed even when left out of pending_ids
                    wanted = set(pending_ids) | set(links)
                    selected = [p for p in pending if p.id in wanted]

                now = datetime.now(UTC)
                manufacturer_ids: dict[str, str | None] = {}
                reused: set[str] = set()

                for item in selected:
                    if item.id in links:
                        material = await self._fetch_material(conn, studio_id, links[item.id])
                        if material is None:
                            raise MaterialNotFoundError(links[item.id])
                        await self._link_project(conn, material, outcome.project_id, now)
                        outcome.linked_materials.append(material)
                    else:
                        key = normalize_name(item.manufacturer_name)
                        if key not in manufacturer_ids:
                            manufacturer_ids[key] = await self._resolve_manufacturer(
                                conn, studio_id, item.manufacturer_name, now, outcome, reused
                            )

                        material = await self._insert_material(
                            conn, item, manufacturer_ids[key], outcome.project_id, now
                        )
                        outcome.materials.append(material)

                    await conn.execute(
                        """
                        UPDATE pending_materials
                        SET status = 'approved', material_id = ?, approved_at = ?, updated_at = ?
                        WHERE id = ? AND studio_id = ?
                        """,
                        (material.id, now.isoformat(), now.isoformat(), item.id, studio_id),
                    )

                selected_ids = {p.id for p in selected}
                for item in pending:
                    if item.id in selected_ids:
                        continue
                    await conn.execute(
                        """
                        UPDATE pending_materials SET status = 'rejected', updated_at = ?
                        WHERE id = ? AND studio_id = ?
                        """,
                        (now.isoformat(), item.id, studio_id),
                    )
                    outcome.rejected_count += 1

                outcome.manufacturers_reused = len(reused)
        except aiosqlite.Error as e:
            raise PersistenceFailureError("approve_submission", str(e)) from e

        logger.info(
            "submission_approved",
            submission_id=submission_id,
            materials=len(outcome.materials),
            linked=len(outcome.linked_materials),
            manufacturers_created=len(outcome.manufacturers_created),
            manufacturers_reused=outcome.manufacturers_reused,
            rejected=outcome.rejected_count,
            project_id=outcome.project_id,
        )
        return outcome

    async def _resolve_manufacturer(
        self,
        conn: aiosqlite.Connection,
        studio_id: str,
        name: str,
        now: datetime,
        outcome: ApprovalOutcome,
        reused: set[str],
    ) -> str | None:
        """Find or create a manufacturer by normalized name; the sentinel maps to none."""
        if name.strip().upper() == UNSPECIFIED_MANUFACTURER:
            return None

        normalized = normalize_name(name)
        cursor = await conn.execute(
            "SELECT id FROM manufacturers WHERE studio_id = ? AND normalized_name = ?",
            (studio_id, normalized),
        )
        row = await cursor.fetchone()
        if row:
            reused.add(row["id"])
            return row["id"]

        manufacturer = Manufacturer(
            id=_generate_id(),
            studio_id=studio_id,
            name=" ".join(name.split()),
            normalized_name=normalized,
            created_at=now,
            updated_at=now,
        )
        await conn.execute(
            """
            INSERT INTO manufacturers (id, studio_id, name, normalized_name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                manufacturer.id,
                studio_id,
                manufacturer.name,
                manufacturer.normalized_name,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        outcome.manufacturers_created.append(manufacturer)
        return manufacturer.id

    async def _insert_material(
        self,
        conn: aiosqlite.Connection,
        item: PendingMaterial,
        manufacturer_id: str | None,
        project_id: str | None,
        now: datetime,
    ) -> Material:
        material = Material(
            id=_generate_id(),
            studio_id=item.studio_id,
            name=item.name,
            tag=item.tag,
            category=item.category,
            subcategory=item.subcategory,
            location=item.location,
            reference_sku=item.reference_sku,
            dimensions=item.dimensions,
            notes=item.notes,
            manufacturer_id=manufacturer_id,
            submission_id=item.submission_id,
            created_at=now,
            updated_at=now,
        )
        await conn.execute(
            """
            INSERT INTO materials (
                id, studio_id, name, tag, category, subcategory, location,
                reference_sku, dimensions, notes, manufacturer_id, submission_id,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                material.id,
                material.studio_id,
                material.name,
                material.tag,
                material.category,
                material.subcategory,
                material.location,
                material.reference_sku,
                material.dimensions,
                material.notes,
                material.manufacturer_id,
                material.submission_id,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        await self._link_project(conn, material, project_id, now)
        return material

    async def _link_project(
        self,
        conn: aiosqlite.Connection,
        material: Material,
        project_id: str | None,
        now: datetime,
    ) -> None:
        if not project_id:
            return
        await conn.execute(
            """
            INSERT OR IGNORE INTO project_materials (project_id, material_id, studio_id, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (project_id, material.id, material.studio_id, now.isoformat()),
        )
        if project_id not in material.project_ids:
            material.project_ids.append(project_id)

    async def _fetch_material(
        self, conn: aiosqlite.Connection, studio_id: str, material_id: str
    ) -> Material | None:
        cursor = await conn.execute(
            "SELECT * FROM materials WHERE id = ? AND studio_id = ?",
            (material_id, studio_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        materials = [self._row_to_material(row)]
        await self._load_project_ids(conn, studio_id, materials)
        return materials[0]

    async def get_material(self, studio_id: str, material_id: str) -> Material | None:
        """Get a catalog material by ID."""
        async with get_connection() as conn:
            return await self._fetch_material(conn, studio_id, material_id)

    async def find_duplicates(
        self, studio_id: str, submission_id: str
    ) -> dict[str, list[Material]]:
        """Match pending rows to catalog materials on SKU and manufacturer name."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT p.id AS pending_id, p.manufacturer_name AS pending_manufacturer,
                       f.normalized_name AS manufacturer_key, m.*
                FROM pending_materials p
                JOIN materials m
                    ON m.studio_id = p.studio_id AND m.reference_sku = p.reference_sku
                JOIN manufacturers f
                    ON f.id = m.manufacturer_id AND f.studio_id = p.studio_id
                WHERE p.studio_id = ? AND p.submission_id = ? AND p.status = 'pending'
                ORDER BY p.position, m.name
                """,
                (studio_id, submission_id),
            )
            matches: dict[str, list[Material]] = {}
            seen: dict[str, Material] = {}
            for row in await cursor.fetchall():
                if normalize_name(row["pending_manufacturer"]) != row["manufacturer_key"]:
                    continue
                material = seen.get(row["id"]) or self._row_to_material(row)
                seen[material.id] = material
                matches.setdefault(row["pending_id"], []).append(material)
            await self._load_project_ids(conn, studio_id, list(seen.values()))

        logger.debug(
            "duplicates_checked",
            submission_id=submission_id,
            rows_with_matches=len(matches),
        )
        return matches

    async def list_materials(
        self,
        studio_id: str,
        project_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Material]:
        """List catalog materials, optionally limited to one project."""
        async with get_connection() as conn:
            if project_id:
                cursor = await conn.execute(
                    """
                    SELECT m.* FROM materials m
                    JOIN project_materials pm ON pm.material_id = m.id
                    WHERE m.studio_id = ? AND pm.studio_id = ? AND pm.project_id = ?
                    ORDER BY m.name
                    LIMIT ? OFFSET ?
                    """,
                    (studio_id, studio_id, project_id, limit, offset),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM materials
                    WHERE studio_id = ?
                    ORDER BY name
                    LIMIT ? OFFSET ?
                    """,
                    (studio_id, limit, offset),
                )
            materials = [self._row_to_material(row) for row in await cursor.fetchall()]
            await self._load_project_ids(conn, studio_id, materials)
            return materials

    async def list_manufacturers(self, studio_id: str) -> list[Manufacturer]:
        """List a studio's manufacturers by name."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM manufacturers WHERE studio_id = ? ORDER BY normalized_name",
                (studio_id,),
            )
            return [self._row_to_manufacturer(row) for row in await cursor.fetchall()]

    async def _load_project_ids(
        self,
        conn: aiosqlite.Connection,
        studio_id: str,
        materials: list[Material],
    ) -> None:
        if not materials:
            return
        by_id = {m.id: m for m in materials}
        placeholders = ", ".join("?" for _ in by_id)
        cursor = await conn.execute(
            f"""
            SELECT material_id, project_id FROM project_materials
            WHERE studio_id = ? AND material_id IN ({placeholders})
            ORDER BY created_at
            """,
            (studio_id, *by_id.keys()),
        )
        for row in await cursor.fetchall():
            by_id[row["material_id"]].project_ids.append(row["project_id"])

    def _row_to_material(self, row: aiosqlite.Row) -> Material:
        """Convert database row to Material entity."""
        return Material(
            id=row["id"],
            studio_id=row["studio_id"],
            name=row["name"],
            tag=row["tag"],
            category=row["category"],
            subcategory=row["subcategory"],
            location=row["location"],
            reference_sku=row["reference_sku"],
            dimensions=row["dimensions"],
            notes=row["notes"],
            manufacturer_id=row["manufacturer_id"],
            submission_id=row["submission_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_manufacturer(self, row: aiosqlite.Row) -> Manufacturer:
        """Convert database row to Manufacturer entity."""
        return Manufacturer(
            id=row["id"],
            studio_id=row["studio_id"],
            name=row["name"],
            normalized_name=row["normalized_name"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
