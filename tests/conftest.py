"""
Общие фикстуры: изолированный хост поверх in-memory SQLite.

Каждый тест открывает хост внутри своего asyncio.run(), поэтому engine
создается и закрывается в одном event loop.
"""
from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest

from extension_core.db import create_all, create_engine, create_session_maker
from extension_core.event_bus import EventBus
from extension_core.extension_system import (
    DisableCoordinator,
    ExtensionDescriptor,
    ExtensionLoader,
    ExtensionRegistry,
)
from extension_core.provisioning import PermissionService, RoleService, SettingsService

IN_MEMORY_DB = "sqlite+aiosqlite://"


@asynccontextmanager
async def _open_host(load_timeout=None, protected_namespaces=(), with_schema=True):
    engine = create_engine(IN_MEMORY_DB)
    if with_schema:
        await create_all(engine)
    session_maker = create_session_maker(engine)
    registry = ExtensionRegistry(session_maker)
    event_bus = EventBus()
    host = SimpleNamespace(
        engine=engine,
        registry=registry,
        settings=SettingsService(session_maker),
        permissions=PermissionService(session_maker),
        roles=RoleService(session_maker),
        event_bus=event_bus,
    )
    host.loader = ExtensionLoader(
        registry,
        host.settings,
        host.permissions,
        host.roles,
        event_bus=event_bus,
        load_timeout=load_timeout,
    )
    host.coordinator = DisableCoordinator(registry, protected_namespaces, event_bus=event_bus)
    try:
        yield host
    finally:
        await engine.dispose()


@pytest.fixture
def open_host():
    """async with open_host() as host: ..."""
    return _open_host


@pytest.fixture
def make_descriptor():
    def _make(namespace, **kwargs):
        kwargs.setdefault("name", namespace.title())
        kwargs.setdefault("version", "1.0.0")
        kwargs.setdefault("feature_factory", lambda: f"{namespace}-handle")
        return ExtensionDescriptor(namespace=namespace, **kwargs)
    return _make


@pytest.fixture
def counting_hook():
    """Hook, считающий свои вызовы: hook.calls."""
    def _make(error=None):
        async def hook():
            hook.calls += 1
            if error is not None:
                raise error
        hook.calls = 0
        return hook
    return _make
