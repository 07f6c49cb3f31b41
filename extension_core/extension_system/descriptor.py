"""
Декларация расширения, которую передает встраивающее приложение при старте.

Дескриптор живет только в памяти и никогда не сохраняется в БД;
персистентное состояние расширения хранится в ``models.Extension``.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .migrations import ExtensionMigration


@dataclass
class DefaultSetting:
    key: str
    value: Any
    # None -> вычисляется по значению (см. provisioning.settings.setting_kind)
    kind: Optional[str] = None


@dataclass
class DefaultPermission:
    name: str
    description: str = ""
    roles: List[str] = field(default_factory=list)


SettingSpec = Union[DefaultSetting, Dict[str, Any]]
PermissionSpec = Union[DefaultPermission, Dict[str, Any]]


def _coerce_setting(item: SettingSpec) -> DefaultSetting:
    if isinstance(item, DefaultSetting):
        return item
    return DefaultSetting(key=item["key"], value=item.get("value"), kind=item.get("kind"))


def _coerce_permission(item: PermissionSpec) -> DefaultPermission:
    if isinstance(item, DefaultPermission):
        return item
    # "role" - ключ из старого формата конфигов
    roles = item.get("roles", item.get("role", []))
    return DefaultPermission(
        name=item["name"],
        description=item.get("description", ""),
        roles=list(roles),
    )


@dataclass
class ExtensionDescriptor:
    """
    Описание расширения.

    Attributes:
        namespace: Глобально уникальный стабильный идентификатор
        enabled: Намерение автора; влияет только на создание новой записи
        default_settings: Настройки, создаваемые один раз при установке
        default_permissions: Права и роли, создаваемые один раз при установке
        initialize_hook: Вызывается ровно один раз при успешной первой установке
        feature_factory: Возвращает непрозрачный handle для монтирования хостом
        migrations: Версионированные шаги обновления хранилища
        dependencies: Информационное поле, порядок загрузки не меняет
    """
    namespace: str
    name: str
    version: str
    feature_factory: Callable[[], Any]
    description: Optional[str] = None
    author: Optional[str] = None
    enabled: bool = True
    default_settings: Sequence[SettingSpec] = field(default_factory=list)
    default_permissions: Sequence[PermissionSpec] = field(default_factory=list)
    initialize_hook: Optional[Callable[[], Awaitable[None]]] = None
    migrations: Sequence[ExtensionMigration] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.namespace:
            raise ValueError("Extension namespace must not be empty")
        self.default_settings = [_coerce_setting(s) for s in self.default_settings]
        self.default_permissions = [_coerce_permission(p) for p in self.default_permissions]
        self.migrations = list(self.migrations)


__all__ = ["DefaultSetting", "DefaultPermission", "ExtensionDescriptor"]
