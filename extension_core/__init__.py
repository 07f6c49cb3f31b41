"""
extension_core - движок жизненного цикла расширений хоста.
"""

from .app import create_app
from .config import ExtensionHostConfig, load_config
from .extension_system import (
    DefaultPermission,
    DefaultSetting,
    DisableCoordinator,
    ExtensionDescriptor,
    ExtensionLoader,
    ExtensionRegistry,
    ExtensionService,
)

__all__ = [
    'create_app',
    'ExtensionHostConfig',
    'load_config',
    'DefaultPermission',
    'DefaultSetting',
    'DisableCoordinator',
    'ExtensionDescriptor',
    'ExtensionLoader',
    'ExtensionRegistry',
    'ExtensionService',
]
