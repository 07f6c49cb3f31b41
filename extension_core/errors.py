"""
Исключения движка расширений.

Provisioning/migration errors are scoped to a single extension and end up in
``last_error``; registry errors abort the whole load pass.
"""
from typing import Optional


class ExtensionError(Exception):
    """Base class for every error raised by the extension engine."""


class ConfigError(ExtensionError):
    """Invalid host configuration."""


class RegistryUnavailableError(ExtensionError):
    """The registry store cannot be reached; the load pass must not continue."""


class ExtensionNotFoundError(ExtensionError):
    def __init__(self, namespace: str):
        super().__init__(f"Extension with namespace '{namespace}' not found")
        self.namespace = namespace


class ProvisioningError(ExtensionError):
    """First-install or upgrade work of one extension failed."""


class PermissionValidationError(ProvisioningError):
    pass


class SettingAlreadyExistsError(ProvisioningError):
    def __init__(self, namespace: str, key: str):
        super().__init__(f"Setting '{namespace}/{key}' already exists")
        self.namespace = namespace
        self.key = key


class ProvisioningTimeoutError(ProvisioningError):
    def __init__(self, namespace: str, timeout: float):
        super().__init__(f"Provisioning of '{namespace}' did not finish within {timeout}s")
        self.namespace = namespace
        self.timeout = timeout


class MigrationError(ProvisioningError):
    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message)
        self.version = version


def format_error(error: BaseException) -> str:
    """Привести исключение к тексту для поля ``last_error``."""
    message = str(error).strip()
    name = type(error).__name__
    if not message:
        return name
    return f"{name}: {message}"


__all__ = [
    "ExtensionError",
    "ConfigError",
    "RegistryUnavailableError",
    "ExtensionNotFoundError",
    "ProvisioningError",
    "PermissionValidationError",
    "SettingAlreadyExistsError",
    "ProvisioningTimeoutError",
    "MigrationError",
    "format_error",
]
