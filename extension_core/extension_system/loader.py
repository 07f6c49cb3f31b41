"""
Основной модуль загрузки расширений.

Для каждого дескриптора (строго по порядку, без параллелизма):
- находит или создает запись в реестре
- пропускает отключенные расширения
- выполняет первую установку (hook, миграции, настройки, права, роли)
  или обновление версии для уже установленных
- собирает feature handles в порядке входного списка

Ошибка одного расширения фиксируется в реестре (status=failed) и не
прерывает загрузку остальных.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..constants import (
    EVENT_EXTENSION_FAILED,
    EVENT_EXTENSION_INSTALLED,
    EVENT_EXTENSION_UPGRADED,
    EXTENSION_STATUS_INSTALLED,
    EXTENSION_STATUS_PENDING,
    ROLE_SOURCE_SYSTEM,
)
from ..errors import ProvisioningTimeoutError, RegistryUnavailableError, format_error
from ..event_bus import EventBus
from ..models import Extension
from ..provisioning.access import PermissionService, RoleService
from ..provisioning.settings import SettingsService
from .descriptor import ExtensionDescriptor
from .migrations import MigrationRunner, compare_versions
from .registry import ExtensionRegistry

logger = logging.getLogger(__name__)


class ExtensionLoader:
    """
    Загрузчик расширений.

    Все зависимости передаются явно; между вызовами ``load_all`` загрузчик
    не хранит состояния, кроме того, что лежит в реестре.
    """

    def __init__(
        self,
        registry: ExtensionRegistry,
        settings: SettingsService,
        permissions: PermissionService,
        roles: RoleService,
        migration_runner: Optional[MigrationRunner] = None,
        event_bus: Optional[EventBus] = None,
        load_timeout: Optional[float] = None,
    ):
        """
        Args:
            registry: Registry Store
            settings: Settings collaborator
            permissions: Permission collaborator
            roles: Role collaborator
            migration_runner: Исполнитель миграций (по умолчанию MigrationRunner())
            event_bus: Шина для событий жизненного цикла (опционально)
            load_timeout: Таймаут работы с одним дескриптором, секунды; None - без таймаута
        """
        self.registry = registry
        self.settings = settings
        self.permissions = permissions
        self.roles = roles
        self.migration_runner = migration_runner or MigrationRunner()
        self.event_bus = event_bus
        self.load_timeout = load_timeout

    async def load_all(self, descriptors: Sequence[ExtensionDescriptor]) -> List[Any]:
        """Загрузить все расширения и вернуть их feature handles по порядку."""
        try:
            await self.registry.acknowledge_restart()
        except SQLAlchemyError as e:
            raise RegistryUnavailableError(f"Extension registry is unreachable: {e}") from e

        handles: List[Any] = []
        loaded_count = 0
        failed_count = 0
        skipped_count = 0

        for descriptor in descriptors:
            namespace = descriptor.namespace
            try:
                record = await self.registry.create_if_missing(
                    namespace,
                    descriptor.name,
                    version=descriptor.version,
                    description=descriptor.description,
                    author=descriptor.author,
                    enabled=descriptor.enabled,
                    dependencies=descriptor.dependencies,
                )
            except Exception as e:
                # записи нет, поэтому mark_failed некуда писать
                failed_count += 1
                logger.error(f"❌ Cannot register extension {namespace}: {e}", exc_info=True)
                await self._emit(EVENT_EXTENSION_FAILED, {"namespace": namespace, "error": format_error(e)})
                continue

            if not record.enabled:
                logger.warning(f"⏭️ Extension {namespace} is disabled. Skipping.")
                skipped_count += 1
                continue

            try:
                await self._run_limited(namespace, self._prepare(descriptor, record))
                handles.append(descriptor.feature_factory())
                loaded_count += 1
            except Exception as e:
                failed_count += 1
                logger.error(f"❌ Failed to load extension {namespace}: {e}", exc_info=True)
                detail = await self.registry.mark_failed(namespace, e)
                await self._emit(EVENT_EXTENSION_FAILED, {"namespace": namespace, "error": detail})

        logger.info(
            f"✅ Loaded {loaded_count} extension(s), "
            f"{failed_count} failed, {skipped_count} disabled"
        )
        return handles

    async def _run_limited(self, namespace: str, work: Awaitable[None]) -> None:
        if not self.load_timeout:
            await work
            return
        try:
            await asyncio.wait_for(work, timeout=self.load_timeout)
        except asyncio.TimeoutError:
            raise ProvisioningTimeoutError(namespace, self.load_timeout) from None

    async def _prepare(self, descriptor: ExtensionDescriptor, record: Extension) -> None:
        if record.status == EXTENSION_STATUS_PENDING:
            await self._install(descriptor)
        elif record.status == EXTENSION_STATUS_INSTALLED:
            await self._upgrade(descriptor, record)
        else:
            # failed: одноразовая установка не повторяется до ручного сброса в pending
            logger.info(
                f"⏭️ Extension {descriptor.namespace} previously failed "
                f"({record.last_error}); mounting without setup"
            )

    async def _install(self, descriptor: ExtensionDescriptor) -> None:
        namespace = descriptor.namespace
        logger.info(f"🔄 Installing extension {namespace} v{descriptor.version}")

        if descriptor.initialize_hook is not None:
            await descriptor.initialize_hook()

        applied = await self.migration_runner.upgrade(
            namespace, descriptor.migrations, None, descriptor.version
        )

        for setting in descriptor.default_settings:
            await self.settings.create(namespace, setting.key, setting.value, setting.kind)

        await self._provision_permissions(descriptor)

        await self.registry.mark_installed(namespace, version=descriptor.version)
        logger.info(f"✅ Extension {namespace} installed successfully")
        await self._emit(
            EVENT_EXTENSION_INSTALLED,
            {"namespace": namespace, "version": descriptor.version, "migrations": applied},
        )

    async def _upgrade(self, descriptor: ExtensionDescriptor, record: Extension) -> None:
        namespace = descriptor.namespace
        stored_version = record.version
        diff = compare_versions(stored_version, descriptor.version)
        if diff == 0:
            return

        if diff < 0:
            applied = await self.migration_runner.upgrade(
                namespace, descriptor.migrations, stored_version, descriptor.version
            )
            await self.registry.set_version(namespace, descriptor.version)
            logger.info(
                f"⬆️ Extension {namespace} upgraded {stored_version} -> {descriptor.version} "
                f"({len(applied)} migration(s))"
            )
            await self._emit(
                EVENT_EXTENSION_UPGRADED,
                {
                    "namespace": namespace,
                    "from_version": stored_version,
                    "to_version": descriptor.version,
                    "migrations": applied,
                },
            )
        else:
            logger.warning(
                f"⚠️ Extension {namespace} downgraded {stored_version} -> {descriptor.version}; "
                f"no migrations are run"
            )
            await self.registry.set_version(namespace, descriptor.version)

    async def _provision_permissions(self, descriptor: ExtensionDescriptor) -> None:
        if not descriptor.default_permissions:
            return

        namespace = descriptor.namespace
        existing = {p.name: p for p in await self.permissions.find_permissions(namespace)}
        roles = {r.name: r for r in await self.roles.find_roles()}

        for permission in descriptor.default_permissions:
            db_permission = existing.get(permission.name)
            if db_permission is None:
                db_permission = await self.permissions.create_permission(
                    namespace, permission.name, permission.description
                )
                existing[permission.name] = db_permission

            for role_name in permission.roles:
                role = roles.get(role_name)
                if role is None:
                    roles[role_name] = await self.roles.create_role(role_name, [db_permission.id])
                    continue
                # роль с правами расширения становится системной
                if role.source != ROLE_SOURCE_SYSTEM:
                    role = await self.roles.update_role(role.id, source=ROLE_SOURCE_SYSTEM)
                if db_permission.id not in role.permission_ids:
                    role = await self.roles.assign_permissions(role.id, [db_permission.id])
                roles[role_name] = role

    async def _emit(self, event_name: str, data: Dict[str, Any]) -> None:
        if self.event_bus is not None:
            await self.event_bus.emit(event_name, data)


__all__ = ["ExtensionLoader"]
