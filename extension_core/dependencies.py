"""
Dependency Injection для core-service.

Depends-функции достают компоненты из app.state, куда их кладет create_app.
"""
import logging

from fastapi import HTTPException, Request

from .event_bus import EventBus
from .extension_system.service import ExtensionService

logger = logging.getLogger(__name__)


def get_extension_service(request: Request) -> ExtensionService:
    """
    Использование:
        @router.get("/extensions")
        async def list_extensions(service: ExtensionService = Depends(get_extension_service)):
            return await service.list_extensions()
    """
    service = getattr(request.app.state, "extension_service", None)
    if service is None:
        logger.error("Extension service not available in app.state")
        raise HTTPException(
            status_code=503,
            detail="Extension service not initialized. Please wait for application startup."
        )
    return service


def get_event_bus(request: Request) -> EventBus:
    event_bus = getattr(request.app.state, "event_bus", None)
    if event_bus is None:
        raise HTTPException(status_code=503, detail="Event bus not initialized.")
    return event_bus


__all__ = ['get_extension_service', 'get_event_bus']
