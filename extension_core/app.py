"""
Extension Host Application - FastAPI приложение с движком расширений.

create_app() собирает зависимости явно (engine -> registry/services ->
loader -> coordinator) и в lifespan один раз выполняет load_all.
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from fastapi import APIRouter, FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import ExtensionHostConfig, load_config
from .constants import API_PREFIX
from .db import create_all, create_engine, create_session_maker
from .event_bus import EventBus
from .extension_system import (
    DisableCoordinator,
    ExtensionDescriptor,
    ExtensionLoader,
    ExtensionRegistry,
    ExtensionService,
)
from .extensions.core import create_core_extension
from .provisioning import PermissionService, RoleService, SettingsService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    # Configure logging early (only if not already configured)
    if not logging.root.handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    logging.getLogger("extension_core").setLevel(level)


def build_extension_service(
    engine: AsyncEngine,
    config: ExtensionHostConfig,
    event_bus: Optional[EventBus] = None,
) -> ExtensionService:
    session_maker = create_session_maker(engine)
    registry = ExtensionRegistry(session_maker)
    loader = ExtensionLoader(
        registry,
        SettingsService(session_maker),
        PermissionService(session_maker),
        RoleService(session_maker),
        event_bus=event_bus,
        load_timeout=config.load_timeout,
    )
    coordinator = DisableCoordinator(
        registry,
        protected_namespaces=config.protected_namespaces,
        event_bus=event_bus,
    )
    return ExtensionService(registry, loader, coordinator)


def mount_feature_handles(app: FastAPI, handles: Sequence[object]) -> int:
    """Смонтировать handles-роутеры; остальные handles хост хранит как есть."""
    mounted = 0
    for handle in handles:
        if isinstance(handle, APIRouter):
            app.include_router(handle, prefix=API_PREFIX)
            mounted += 1
    return mounted


def create_app(
    descriptors: Optional[Sequence[ExtensionDescriptor]] = None,
    config: Optional[ExtensionHostConfig] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """
    Args:
        descriptors: Расширения встраивающего приложения (core добавляется первым)
        config: Конфигурация; по умолчанию load_config()
        engine: Готовый engine (например, для тестов)
    """
    config = config or load_config()
    configure_logging(config.log_level)

    engine = engine or create_engine(config.db_url, echo=config.sql_echo)
    event_bus = EventBus()
    service = build_extension_service(engine, config, event_bus)
    extra: List[ExtensionDescriptor] = list(descriptors or [])

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_all(engine)
        # RegistryUnavailableError здесь прерывает старт хоста
        handles = await service.load_all([create_core_extension(), *extra])
        mounted = mount_feature_handles(app, handles)
        app.state.feature_handles = handles
        logger.info(f"🔌 Activated {len(handles)} extension(s), mounted {mounted} router(s)")
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(title="Extension Host", lifespan=lifespan)
    app.state.config = config
    app.state.event_bus = event_bus
    app.state.extension_service = service
    app.state.feature_handles = []
    return app


__all__ = ["create_app", "build_extension_service", "configure_logging", "mount_feature_handles"]
