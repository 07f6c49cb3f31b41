"""
Расширение gallery: пример стороннего расширения с миграциями хранилища.
"""
import logging

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from ...constants import GALLERY_NAMESPACE
from ...extension_system.descriptor import DefaultPermission, DefaultSetting, ExtensionDescriptor
from .migrations import gallery_migrations
from .router import build_router
from .tables import GALLERY_TABLE, LEGACY_GALLERY_TABLE, gallery_metadata

logger = logging.getLogger(__name__)

GALLERY_VERSION = "0.0.1-alpha.7"

GALLERY_SETTINGS = [
    DefaultSetting(key="gallery", value={"defaultLayout": "grid", "itemsPerPage": 24}),
]

GALLERY_PERMISSIONS = [
    DefaultPermission("gallery:galleries.read", "Permission to view galleries", ["admin", "editor", "viewer"]),
    DefaultPermission("gallery:galleries.create", "Permission to create galleries", ["admin", "editor"]),
    DefaultPermission("gallery:galleries.update", "Permission to update galleries", ["admin", "editor"]),
    DefaultPermission("gallery:galleries.delete", "Permission to delete galleries", ["admin"]),
]


def _create_tables(connection: Connection) -> None:
    inspector = sa.inspect(connection)
    # legacy-таблицу переименует миграция 0.0.1-alpha.7
    if inspector.has_table(GALLERY_TABLE) or inspector.has_table(LEGACY_GALLERY_TABLE):
        return
    gallery_metadata.create_all(connection)
    logger.info(f"Created table {GALLERY_TABLE}")


def create_gallery_extension(engine: AsyncEngine, enabled: bool = True) -> ExtensionDescriptor:
    async def initialize() -> None:
        logger.info("Initializing gallery extension")
        async with engine.begin() as conn:
            await conn.run_sync(_create_tables)

    return ExtensionDescriptor(
        namespace=GALLERY_NAMESPACE,
        name="Gallery",
        version=GALLERY_VERSION,
        description="Extension providing gallery functionality",
        enabled=enabled,
        default_settings=GALLERY_SETTINGS,
        default_permissions=GALLERY_PERMISSIONS,
        initialize_hook=initialize,
        feature_factory=lambda: build_router(engine),
        migrations=gallery_migrations(engine),
    )


__all__ = ["create_gallery_extension", "GALLERY_VERSION"]
