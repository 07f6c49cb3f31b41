"""
Таблицы расширения gallery.

Отдельная MetaData: схема принадлежит расширению, а не хосту,
и меняется только его миграциями.
"""
from datetime import datetime

import sqlalchemy as sa

GALLERY_TABLE = "gallery_galleries"
LEGACY_GALLERY_TABLE = "gallery_plugin_galleries"

gallery_metadata = sa.MetaData()

galleries = sa.Table(
    GALLERY_TABLE,
    gallery_metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("slug", sa.String(255), nullable=True),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("status", sa.String(32), nullable=False, default="draft"),
    sa.Column("created_at", sa.DateTime, nullable=False, default=datetime.utcnow),
    sa.Column("updated_at", sa.DateTime, nullable=False, default=datetime.utcnow),
)
