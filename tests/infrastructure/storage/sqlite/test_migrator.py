"""Tests for the schema migrator and connection pool."""

from pathlib import Path

import aiosqlite

from treqy.infrastructure.storage.sqlite import ConnectionPool
from treqy.infrastructure.storage.sqlite.migrations import (
    REQUIRED_TABLES,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


class TestMigrator:
    def test_discovers_bundled_migrations(self):
        migrations = discover_migrations()
        assert migrations
        assert migrations[0].version == "001"
        assert len(migrations[0].checksum) == 16

    async def test_initialize_creates_required_tables(self, tmp_path: Path):
        db_path = tmp_path / "fresh.db"

        results = await initialize_database(db_path, create_backup_before=False)

        assert [r.success for r in results] == [True]
        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_second_run_applies_nothing(self, tmp_path: Path):
        db_path = tmp_path / "again.db"
        await initialize_database(db_path, create_backup_before=False)

        assert await initialize_database(db_path, create_backup_before=True) == []
        assert not list(tmp_path.glob("*.backup_*"))

    async def test_status_and_integrity(self, tmp_path: Path):
        db_path = tmp_path / "status.db"

        before = await get_migration_status(db_path)
        assert not before["exists"]
        assert before["pending_migrations"] == ["001"]

        await initialize_database(db_path, create_backup_before=False)

        after = await get_migration_status(db_path)
        assert after["current_version"] == "001"
        assert after["pending_migrations"] == []

        checks = await verify_schema_integrity(db_path)
        assert all(check["status"] == "PASS" for check in checks)


class TestConnectionPool:
    async def test_transaction_rolls_back_on_error(self, tmp_path: Path):
        db_path = tmp_path / "pool.db"
        await initialize_database(db_path, create_backup_before=False)
        pool = ConnectionPool(db_path, pool_size=1)

        try:
            async with pool.transaction(immediate=True) as conn:
                await conn.execute(
                    "INSERT INTO manufacturers VALUES ('m1', 's', 'Acme', 'acme', 'now', 'now')"
                )
                raise RuntimeError("abort")
        except RuntimeError:
            pass

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM manufacturers")
            assert (await cursor.fetchone())[0] == 0

        await pool.close()

    async def test_foreign_keys_enabled(self, tmp_path: Path):
        db_path = tmp_path / "fk.db"
        await initialize_database(db_path, create_backup_before=False)
        pool = ConnectionPool(db_path, pool_size=1)

        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA foreign_keys")
            assert (await cursor.fetchone())[0] == 1

        await pool.close()
