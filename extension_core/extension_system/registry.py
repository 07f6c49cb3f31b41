"""
Registry Store - персистентный реестр записей расширений.

Единственный источник правды о статусе расширения. Загрузчик и
координатор отключения работают только через этот интерфейс.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..constants import (
    EXTENSION_STATUS_FAILED,
    EXTENSION_STATUS_INSTALLED,
    EXTENSION_STATUS_PENDING,
    HOST_FLAG_RESTART_REQUIRED,
)
from ..db import session_scope
from ..errors import format_error
from ..models import Extension, HostFlag

logger = logging.getLogger(__name__)


class ExtensionRegistry:
    """Репозиторий записей ``Extension`` и host-флагов."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_namespace(self, namespace: str) -> Optional[Extension]:
        async with session_scope(self.session_maker) as db:
            result = await db.execute(select(Extension).where(Extension.namespace == namespace))
            return result.scalar_one_or_none()

    async def create_if_missing(
        self,
        namespace: str,
        name: str,
        version: Optional[str] = None,
        description: Optional[str] = None,
        author: Optional[str] = None,
        enabled: bool = True,
        dependencies: Optional[Sequence[str]] = None,
    ) -> Extension:
        """
        Вернуть существующую запись без изменений или создать новую
        со ``status=pending``.

        Дубликат ключа при конкурентном создании трактуется как
        "уже существует" и запись перечитывается.
        """
        existing = await self.find_by_namespace(namespace)
        if existing is not None:
            return existing

        now = datetime.utcnow()
        record = Extension(
            namespace=namespace,
            name=name,
            version=version or "1.0.0",
            description=description,
            author=author,
            status=EXTENSION_STATUS_PENDING,
            enabled=enabled,
            pending_disable=False,
            dependencies=list(dependencies or []),
            last_error=None,
            installed_at=now,
            updated_at=now,
        )
        try:
            async with self.session_maker() as db:
                db.add(record)
                await db.commit()
        except IntegrityError:
            logger.debug(f"Extension {namespace} was created concurrently, re-reading")
            existing = await self.find_by_namespace(namespace)
            if existing is None:
                raise
            return existing

        logger.info(f"💾 Created extension entry for {namespace} in the database")
        return record

    async def mark_installed(self, namespace: str, version: Optional[str] = None) -> None:
        now = datetime.utcnow()
        values = {
            "status": EXTENSION_STATUS_INSTALLED,
            "last_error": None,
            "installed_at": now,
            "updated_at": now,
        }
        if version:
            values["version"] = version
        await self._update(namespace, **values)

    async def mark_failed(self, namespace: str, error: Union[BaseException, str, None]) -> str:
        """Перевести в ``failed``; ``enabled`` не трогается. Возвращает сохраненный текст ошибки."""
        if isinstance(error, BaseException):
            detail = format_error(error)
        else:
            detail = str(error) if error is not None else "Unknown error"
        await self._update(
            namespace,
            status=EXTENSION_STATUS_FAILED,
            last_error=detail,
            updated_at=datetime.utcnow(),
        )
        return detail

    async def set_enabled(self, namespace: str, enabled: bool, pending_disable: Optional[bool] = None) -> int:
        """Возвращает количество затронутых записей."""
        values = {"enabled": enabled, "updated_at": datetime.utcnow()}
        if pending_disable is not None:
            values["pending_disable"] = pending_disable
        return await self._update(namespace, **values)

    async def set_version(self, namespace: str, version: str) -> int:
        return await self._update(namespace, version=version, updated_at=datetime.utcnow())

    async def list_all(self, enabled_only: bool = False) -> List[Extension]:
        async with session_scope(self.session_maker) as db:
            query = select(Extension).order_by(Extension.id)
            if enabled_only:
                query = query.where(Extension.enabled.is_(True))
            result = await db.execute(query)
            return list(result.scalars().all())

    # ============= HOST FLAGS =============

    async def get_host_flag(self, name: str) -> bool:
        async with session_scope(self.session_maker) as db:
            flag = await db.get(HostFlag, name)
            return bool(flag.value) if flag is not None else False

    async def set_host_flag(self, name: str, value: bool) -> None:
        async with session_scope(self.session_maker) as db:
            flag = await db.get(HostFlag, name)
            if flag is None:
                db.add(HostFlag(name=name, value=value, updated_at=datetime.utcnow()))
            else:
                flag.value = value
                flag.updated_at = datetime.utcnow()

    async def is_restart_required(self) -> bool:
        return await self.get_host_flag(HOST_FLAG_RESTART_REQUIRED)

    async def set_restart_required(self, value: bool = True) -> None:
        await self.set_host_flag(HOST_FLAG_RESTART_REQUIRED, value)

    async def acknowledge_restart(self) -> int:
        """
        Отметить, что перезапуск произошел: снять ``pending_disable`` с уже
        отключенных записей и сбросить флаг restart_required.
        """
        async with session_scope(self.session_maker) as db:
            result = await db.execute(
                update(Extension)
                .where(Extension.pending_disable.is_(True), Extension.enabled.is_(False))
                .values(pending_disable=False)
            )
            flag = await db.get(HostFlag, HOST_FLAG_RESTART_REQUIRED)
            if flag is not None and flag.value:
                flag.value = False
                flag.updated_at = datetime.utcnow()
            acknowledged = result.rowcount or 0
        if acknowledged:
            logger.info(f"🔄 Acknowledged {acknowledged} pending disable(s) after restart")
        return acknowledged

    async def _update(self, namespace: str, **values) -> int:
        async with session_scope(self.session_maker) as db:
            result = await db.execute(
                update(Extension).where(Extension.namespace == namespace).values(**values)
            )
            return result.rowcount or 0


__all__ = ["ExtensionRegistry"]
