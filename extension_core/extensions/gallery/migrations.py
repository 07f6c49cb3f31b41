"""
Миграции расширения gallery.

0.0.1-alpha.0 - индексы на gallery_galleries
0.0.1-alpha.7 - перенос legacy-таблицы gallery_plugin_galleries, затем индексы
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncEngine

from ...extension_system.migrations import (
    ExtensionMigration,
    IndexDefinition,
    RenameTableMigration,
    TableIndexMigration,
)
from .tables import GALLERY_TABLE, LEGACY_GALLERY_TABLE

GALLERY_INDEXES = [
    IndexDefinition("gallery_status_updated_at", ("status", "updated_at")),
    IndexDefinition("gallery_slug_unique", ("slug",), unique=True),
    IndexDefinition("gallery_created_at", ("created_at",)),
]


def gallery_indexes_migration(engine: AsyncEngine) -> TableIndexMigration:
    return TableIndexMigration(engine, "0.0.1-alpha.0", GALLERY_TABLE, GALLERY_INDEXES)


def gallery_rename_table_migration(engine: AsyncEngine) -> RenameTableMigration:
    return RenameTableMigration(
        engine,
        "0.0.1-alpha.7",
        legacy_table=LEGACY_GALLERY_TABLE,
        table_name=GALLERY_TABLE,
        then=gallery_indexes_migration(engine),
    )


def gallery_migrations(engine: AsyncEngine) -> List[ExtensionMigration]:
    return [gallery_indexes_migration(engine), gallery_rename_table_migration(engine)]
