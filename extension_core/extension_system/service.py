"""
ExtensionService - фасад движка расширений для хоста и админки.
"""
from typing import Any, Dict, List, Sequence

from ..errors import ExtensionNotFoundError
from ..models import Extension
from .descriptor import ExtensionDescriptor
from .disable import DisableCoordinator
from .loader import ExtensionLoader
from .registry import ExtensionRegistry


class ExtensionService:
    def __init__(self, registry: ExtensionRegistry, loader: ExtensionLoader, coordinator: DisableCoordinator):
        self.registry = registry
        self.loader = loader
        self.coordinator = coordinator

    async def load_all(self, descriptors: Sequence[ExtensionDescriptor]) -> List[Any]:
        return await self.loader.load_all(descriptors)

    async def list_extensions(self, enabled_only: bool = False) -> List[Extension]:
        return await self.registry.list_all(enabled_only=enabled_only)

    async def get_extension(self, namespace: str) -> Extension:
        record = await self.registry.find_by_namespace(namespace)
        if record is None:
            raise ExtensionNotFoundError(namespace)
        return record

    async def disable_extension(self, namespace: str) -> Dict[str, bool]:
        return {"success": await self.coordinator.disable(namespace)}

    async def enable_extension(self, namespace: str) -> Dict[str, bool]:
        return {"success": await self.coordinator.enable(namespace)}

    async def is_restart_required(self) -> bool:
        return await self.registry.is_restart_required()

__all__ = ["ExtensionService"]
