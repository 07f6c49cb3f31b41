"""
Settings collaborator: настройки расширений (namespace, key) -> value.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..constants import (
    SETTING_KIND_ARRAY,
    SETTING_KIND_BOOLEAN,
    SETTING_KIND_NULL,
    SETTING_KIND_NUMBER,
    SETTING_KIND_OBJECT,
    SETTING_KIND_STRING,
)
from ..db import session_scope
from ..errors import SettingAlreadyExistsError
from ..models import Setting

logger = logging.getLogger(__name__)


def setting_kind(value: Any) -> str:
    """Определить вид значения настройки в терминах JSON."""
    if value is None:
        return SETTING_KIND_NULL
    # bool проверяется раньше int: bool - подкласс int
    if isinstance(value, bool):
        return SETTING_KIND_BOOLEAN
    if isinstance(value, (int, float)):
        return SETTING_KIND_NUMBER
    if isinstance(value, str):
        return SETTING_KIND_STRING
    if isinstance(value, (list, tuple)):
        return SETTING_KIND_ARRAY
    return SETTING_KIND_OBJECT


@dataclass
class SettingRecord:
    namespace: str
    key: str
    value: Any
    kind: str

    @classmethod
    def from_model(cls, setting: Setting) -> "SettingRecord":
        return cls(namespace=setting.namespace, key=setting.key, value=setting.value, kind=setting.kind)


class SettingsService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def create(self, namespace: str, key: str, value: Any, kind: Optional[str] = None) -> SettingRecord:
        """
        Создать настройку. Не upsert: существующий ключ -> SettingAlreadyExistsError.
        """
        setting = Setting(
            namespace=namespace,
            key=key,
            value=value,
            kind=kind or setting_kind(value),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )
        try:
            async with self.session_maker() as db:
                db.add(setting)
                await db.commit()
        except IntegrityError as e:
            raise SettingAlreadyExistsError(namespace, key) from e
        logger.debug(f"💾 Created setting {namespace}/{key}")
        return SettingRecord.from_model(setting)

    async def find_one(self, namespace: str, key: str) -> Optional[SettingRecord]:
        async with session_scope(self.session_maker) as db:
            result = await db.execute(
                select(Setting).where(Setting.namespace == namespace, Setting.key == key)
            )
            setting = result.scalar_one_or_none()
            return SettingRecord.from_model(setting) if setting else None

    async def find_all(self, namespace: Optional[str] = None) -> List[SettingRecord]:
        async with session_scope(self.session_maker) as db:
            query = select(Setting).order_by(Setting.id)
            if namespace:
                query = query.where(Setting.namespace == namespace)
            result = await db.execute(query)
            return [SettingRecord.from_model(s) for s in result.scalars().all()]

    async def upsert(self, namespace: str, key: str, value: Any) -> SettingRecord:
        async with session_scope(self.session_maker) as db:
            result = await db.execute(
                select(Setting).where(Setting.namespace == namespace, Setting.key == key)
            )
            setting = result.scalar_one_or_none()
            if setting is None:
                setting = Setting(namespace=namespace, key=key, created_at=datetime.utcnow())
                db.add(setting)
            setting.value = value
            setting.kind = setting_kind(value)
            setting.updated_at = datetime.utcnow()
            await db.flush()
            return SettingRecord.from_model(setting)


__all__ = ["SettingsService", "SettingRecord", "setting_kind"]
