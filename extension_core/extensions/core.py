"""
Встроенный набор функций хоста (namespace ``core``).

Загружается первым; его feature handle - админский роутер расширений.
"""
import logging

from ..constants import CORE_NAMESPACE
from ..extension_system.descriptor import DefaultPermission, DefaultSetting, ExtensionDescriptor
from ..routes.extensions import router as extensions_router

logger = logging.getLogger(__name__)

CORE_VERSION = "1.0.0"

AUTH_SETTINGS_KEY = "auth"
CACHE_SETTINGS_KEY = "cache"

CORE_SETTINGS = [
    DefaultSetting(
        key=AUTH_SETTINGS_KEY,
        value={
            "ttl": 3600,
            "refreshTokensEnabled": True,
            "refreshTokenTtl": 43200,
            "maxLoginAttempts": 5,
            "loginAttemptResetTime": 900,
        },
    ),
    DefaultSetting(key=CACHE_SETTINGS_KEY, value={"enabled": True, "ttl": 300}),
]

CORE_PERMISSIONS = [
    # Users
    DefaultPermission("core:users.read", "Permission to view user data", ["admin", "editor", "viewer"]),
    DefaultPermission("core:users.create", "Permission to create new users", ["admin", "editor"]),
    DefaultPermission("core:users.update", "Permission to update existing user data", ["admin", "editor"]),
    DefaultPermission("core:users.delete", "Permission to delete users", ["admin"]),
    # Settings
    DefaultPermission("core:settings.read", "Permission to view system settings", ["admin", "editor"]),
    DefaultPermission("core:settings.update", "Permission to update system settings", ["admin"]),
    # Roles
    DefaultPermission("core:roles.read", "Permission to view existing roles", ["admin", "editor"]),
    DefaultPermission("core:roles.create", "Permission to create new roles", ["admin"]),
    DefaultPermission("core:roles.update", "Permission to update existing roles", ["admin"]),
    DefaultPermission("core:roles.delete", "Permission to delete roles", ["admin"]),
    # Extensions
    DefaultPermission("core:extensions.read", "Permission to list installed extensions", ["admin", "editor"]),
    DefaultPermission("core:extensions.update", "Permission to enable or disable extensions", ["admin"]),
]


async def _initialize_core() -> None:
    logger.info("Initializing the host core")


def create_core_extension() -> ExtensionDescriptor:
    return ExtensionDescriptor(
        namespace=CORE_NAMESPACE,
        name="Core",
        version=CORE_VERSION,
        description="Built-in feature set of the extension host",
        default_settings=CORE_SETTINGS,
        default_permissions=CORE_PERMISSIONS,
        initialize_hook=_initialize_core,
        feature_factory=lambda: extensions_router,
    )


__all__ = ["create_core_extension", "CORE_SETTINGS", "CORE_PERMISSIONS", "CORE_VERSION"]
