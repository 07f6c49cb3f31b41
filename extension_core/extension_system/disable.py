"""
Disable Coordinator - отключение расширений.

Отключение только меняет persisted-флаги; уже смонтированный handle
остается активным до перезапуска хоста.
"""
import logging
from typing import Iterable, Optional

from ..constants import EVENT_EXTENSION_DISABLED, EVENT_EXTENSION_ENABLED
from ..event_bus import EventBus
from .registry import ExtensionRegistry

logger = logging.getLogger(__name__)


class DisableCoordinator:
    def __init__(
        self,
        registry: ExtensionRegistry,
        protected_namespaces: Iterable[str] = (),
        event_bus: Optional[EventBus] = None,
    ):
        self.registry = registry
        self.protected_namespaces = frozenset(protected_namespaces)
        self.event_bus = event_bus

    async def disable(self, namespace: str) -> bool:
        """
        Отключить расширение и поднять флаг restart_required.

        Returns:
            True если запись найдена (в том числе уже отключенная),
            False если записи нет или namespace защищен
        """
        if namespace in self.protected_namespaces:
            logger.warning(f"⚠️ Extension {namespace} is protected and cannot be disabled")
            return False

        modified = await self.registry.set_enabled(namespace, False, pending_disable=True)
        if modified < 1:
            logger.info(f"Extension {namespace} not found, nothing to disable")
            return False

        # Не атомарно с set_enabled: флаг носит рекомендательный характер
        await self.registry.set_restart_required(True)
        logger.info(f"🔻 Extension {namespace} disabled; restart required")

        if self.event_bus is not None:
            await self.event_bus.emit(EVENT_EXTENSION_DISABLED, {"namespace": namespace})
        return True

    async def enable(self, namespace: str) -> bool:
        """Разрешить загрузку расширения со следующего старта."""
        modified = await self.registry.set_enabled(namespace, True, pending_disable=False)
        if modified < 1:
            return False

        logger.info(f"🔺 Extension {namespace} enabled; takes effect after restart")
        if self.event_bus is not None:
            await self.event_bus.emit(EVENT_EXTENSION_ENABLED, {"namespace": namespace})
        return True


__all__ = ["DisableCoordinator"]
