"""
Provisioning collaborators: настройки, права и роли, которые создаются
при первой установке расширения.
"""

from .access import PermissionRecord, PermissionService, RoleRecord, RoleService, validate_permission_name
from .settings import SettingRecord, SettingsService, setting_kind

__all__ = [
    'PermissionRecord',
    'PermissionService',
    'RoleRecord',
    'RoleService',
    'validate_permission_name',
    'SettingRecord',
    'SettingsService',
    'setting_kind',
]
