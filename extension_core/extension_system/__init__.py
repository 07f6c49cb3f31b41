"""
Extension System - движок жизненного цикла расширений.

Структура:
- descriptor.py - декларация расширения (ExtensionDescriptor)
- registry.py - Registry Store поверх SQLAlchemy
- migrations.py - версии, MigrationRunner и типовые миграции
- loader.py - ExtensionLoader (load_all)
- disable.py - DisableCoordinator
- service.py - фасад для хоста и админских роутов
"""

from .descriptor import DefaultPermission, DefaultSetting, ExtensionDescriptor
from .disable import DisableCoordinator
from .loader import ExtensionLoader
from .migrations import (
    ExtensionMigration,
    IndexDefinition,
    MigrationRunner,
    RenameTableMigration,
    TableIndexMigration,
    compare_versions,
)
from .registry import ExtensionRegistry
from .service import ExtensionService

__all__ = [
    'DefaultPermission',
    'DefaultSetting',
    'ExtensionDescriptor',
    'DisableCoordinator',
    'ExtensionLoader',
    'ExtensionMigration',
    'IndexDefinition',
    'MigrationRunner',
    'RenameTableMigration',
    'TableIndexMigration',
    'compare_versions',
    'ExtensionRegistry',
    'ExtensionService',
]
