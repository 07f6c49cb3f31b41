import asyncio
from datetime import datetime

import pytest
import sqlalchemy as sa

from extension_core.errors import MigrationError
from extension_core.extension_system import (
    ExtensionMigration,
    IndexDefinition,
    MigrationRunner,
    RenameTableMigration,
    TableIndexMigration,
    compare_versions,
)
from extension_core.extension_system.migrations import select_migrations
from extension_core.extensions.gallery import GALLERY_VERSION, create_gallery_extension
from extension_core.extensions.gallery.migrations import GALLERY_INDEXES
from extension_core.extensions.gallery.tables import GALLERY_TABLE, LEGACY_GALLERY_TABLE


class Step(ExtensionMigration):
    def __init__(self, version):
        self.version = version


def _gallery_table(name):
    return sa.Table(
        name,
        sa.MetaData(),
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("slug", sa.String(255)),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )


async def _create_table(engine, table):
    async with engine.begin() as conn:
        await conn.run_sync(table.metadata.create_all)


async def _indexes(engine, table_name):
    async with engine.connect() as conn:
        indexes = await conn.run_sync(lambda c: sa.inspect(c).get_indexes(table_name))
    return {ix["name"]: (tuple(ix["column_names"]), bool(ix["unique"])) for ix in indexes}


async def _tables(engine):
    async with engine.connect() as conn:
        return set(await conn.run_sync(lambda c: sa.inspect(c).get_table_names()))


# ============= VERSIONS =============


@pytest.mark.parametrize("a,b,expected", [
    ("1.0.0", "1.0.0", 0),
    ("1.0.0", "1.0.1", -1),
    ("1.10.0", "1.9.0", 1),
    ("1.0", "1.0.0", 0),
    ("v2.0.0", "2.0.0", 0),
    ("0.0.1-alpha.0", "0.0.1-alpha.7", -1),
    ("0.0.1-alpha.10", "0.0.1-alpha.7", 1),
    ("0.0.1-alpha.7", "0.0.1", -1),
    ("1.0.0-alpha", "1.0.0-beta", -1),
])
def test_compare_versions(a, b, expected):
    assert compare_versions(a, b) == expected


def test_select_migrations_range_and_order():
    steps = [Step("1.2.0"), Step("1.0.0"), Step("1.1.0"), Step("2.0.0")]

    assert [m.version for m in select_migrations(steps, None, "1.2.0")] == ["1.0.0", "1.1.0", "1.2.0"]
    assert [m.version for m in select_migrations(steps, "1.0.0", "1.2.0")] == ["1.1.0", "1.2.0"]
    assert select_migrations(steps, "2.0.0", "2.0.0") == []


def test_runner_wraps_migration_errors():
    class Broken(ExtensionMigration):
        version = "1.0.0"

        async def up(self):
            raise ValueError("no column")

    with pytest.raises(MigrationError) as excinfo:
        asyncio.run(MigrationRunner().upgrade("blog", [Broken()], None, "1.0.0"))
    assert excinfo.value.version == "1.0.0"
    assert "no column" in str(excinfo.value)


def test_runner_downgrade_runs_in_reverse():
    journal = []

    class Logged(ExtensionMigration):
        def __init__(self, version):
            self.version = version

        async def down(self):
            journal.append(self.version)

    steps = [Logged("1.0.0"), Logged("1.1.0"), Logged("1.2.0")]
    reverted = asyncio.run(MigrationRunner().downgrade("blog", steps, "1.2.0", "1.0.0"))
    assert reverted == journal == ["1.2.0", "1.1.0"]


# ============= INDEX MIGRATIONS =============


def test_index_migration_is_idempotent(open_host):
    async def scenario():
        async with open_host() as host:
            await _create_table(host.engine, _gallery_table(GALLERY_TABLE))
            migration = TableIndexMigration(host.engine, "0.0.1", GALLERY_TABLE, GALLERY_INDEXES)

            await migration.up()
            first = await _indexes(host.engine, GALLERY_TABLE)
            await migration.up()
            assert await _indexes(host.engine, GALLERY_TABLE) == first

            assert first["gallery_status_updated_at"] == (("status", "updated_at"), False)
            assert first["gallery_slug_unique"] == (("slug",), True)
            assert first["gallery_created_at"] == (("created_at",), False)

    asyncio.run(scenario())


def test_index_migration_rebuilds_conflicting_index(open_host):
    async def scenario():
        async with open_host() as host:
            table = _gallery_table(GALLERY_TABLE)
            sa.Index("gallery_created_at", table.c.title)
            await _create_table(host.engine, table)

            await TableIndexMigration(host.engine, "0.0.1", GALLERY_TABLE, GALLERY_INDEXES).up()

            indexes = await _indexes(host.engine, GALLERY_TABLE)
            assert indexes["gallery_created_at"] == (("created_at",), False)

    asyncio.run(scenario())


def test_index_migration_skips_missing_table(open_host):
    async def scenario():
        async with open_host() as host:
            migration = TableIndexMigration(host.engine, "0.0.1", GALLERY_TABLE, GALLERY_INDEXES)
            await migration.up()
            await migration.down()
            assert GALLERY_TABLE not in await _tables(host.engine)

    asyncio.run(scenario())


def test_index_migration_down_tolerates_missing_indexes(open_host):
    async def scenario():
        async with open_host() as host:
            await _create_table(host.engine, _gallery_table(GALLERY_TABLE))
            migration = TableIndexMigration(
                host.engine,
                "0.0.1",
                GALLERY_TABLE,
                [IndexDefinition("only_this", ("slug",))],
            )
            await migration.up()
            await migration.down()
            await migration.down()
            assert await _indexes(host.engine, GALLERY_TABLE) == {}

    asyncio.run(scenario())


# ============= RENAME MIGRATION =============


def test_rename_moves_legacy_table_then_ensures_indexes(open_host):
    async def scenario():
        async with open_host() as host:
            legacy = _gallery_table(LEGACY_GALLERY_TABLE)
            await _create_table(host.engine, legacy)
            async with host.engine.begin() as conn:
                now = datetime.utcnow()
                await conn.execute(legacy.insert().values(
                    slug="summer", title="Summer", status="published", created_at=now, updated_at=now
                ))

            indexes = TableIndexMigration(host.engine, "0.0.2", GALLERY_TABLE, GALLERY_INDEXES)
            rename = RenameTableMigration(host.engine, "0.0.2", LEGACY_GALLERY_TABLE, GALLERY_TABLE, then=indexes)
            await rename.up()

            tables = await _tables(host.engine)
            assert GALLERY_TABLE in tables
            assert LEGACY_GALLERY_TABLE not in tables
            assert set(await _indexes(host.engine, GALLERY_TABLE)) == {ix.name for ix in GALLERY_INDEXES}
            async with host.engine.connect() as conn:
                assert await conn.scalar(sa.text(f"SELECT title FROM {GALLERY_TABLE}")) == "Summer"

            # повтор ничего не меняет
            await rename.up()
            assert await _tables(host.engine) == tables

            await rename.down()
            tables = await _tables(host.engine)
            assert LEGACY_GALLERY_TABLE in tables
            assert GALLERY_TABLE not in tables

    asyncio.run(scenario())


def test_rename_keeps_existing_target_table(open_host):
    async def scenario():
        async with open_host() as host:
            await _create_table(host.engine, _gallery_table(LEGACY_GALLERY_TABLE))
            await _create_table(host.engine, _gallery_table(GALLERY_TABLE))

            await RenameTableMigration(host.engine, "0.0.2", LEGACY_GALLERY_TABLE, GALLERY_TABLE).up()

            tables = await _tables(host.engine)
            assert {GALLERY_TABLE, LEGACY_GALLERY_TABLE} <= tables

    asyncio.run(scenario())


# ============= GALLERY EXTENSION =============


def test_gallery_fresh_install_creates_table_and_indexes(open_host):
    async def scenario():
        async with open_host() as host:
            handles = await host.loader.load_all([create_gallery_extension(host.engine)])

            assert len(handles) == 1
            record = await host.registry.find_by_namespace("gallery")
            assert record.status == "installed"
            assert record.version == GALLERY_VERSION
            assert set(await _indexes(host.engine, GALLERY_TABLE)) == {ix.name for ix in GALLERY_INDEXES}

    asyncio.run(scenario())


def test_gallery_install_migrates_legacy_table(open_host):
    async def scenario():
        async with open_host() as host:
            await _create_table(host.engine, _gallery_table(LEGACY_GALLERY_TABLE))

            await host.loader.load_all([create_gallery_extension(host.engine)])

            tables = await _tables(host.engine)
            assert GALLERY_TABLE in tables
            assert LEGACY_GALLERY_TABLE not in tables
            assert set(await _indexes(host.engine, GALLERY_TABLE)) == {ix.name for ix in GALLERY_INDEXES}

    asyncio.run(scenario())
