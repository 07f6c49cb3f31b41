"""
Extension management routes.
Listing, lookup, disable/enable and restart status.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_event_bus, get_extension_service
from ..errors import ExtensionNotFoundError
from ..event_bus import EventBus
from ..extension_system.service import ExtensionService

router = APIRouter(tags=["extensions"])


@router.get("/extensions")
async def list_extensions(
    enabled_only: bool = Query(False, alias="enabledOnly"),
    service: ExtensionService = Depends(get_extension_service),
) -> List[Dict[str, Any]]:
    """List registry records, optionally only enabled ones."""
    records = await service.list_extensions(enabled_only=enabled_only)
    return [record.to_dict() for record in records]


@router.get("/extensions/{namespace}")
async def get_extension(
    namespace: str,
    service: ExtensionService = Depends(get_extension_service),
) -> Dict[str, Any]:
    try:
        record = await service.get_extension(namespace)
    except ExtensionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return record.to_dict()


@router.post("/extensions/{namespace}/disable")
async def disable_extension(
    namespace: str,
    service: ExtensionService = Depends(get_extension_service),
) -> Dict[str, bool]:
    """Disable takes effect after the host restarts."""
    return await service.disable_extension(namespace)


@router.post("/extensions/{namespace}/enable")
async def enable_extension(
    namespace: str,
    service: ExtensionService = Depends(get_extension_service),
) -> Dict[str, bool]:
    return await service.enable_extension(namespace)


@router.get("/system/restart-required")
async def restart_required(service: ExtensionService = Depends(get_extension_service)) -> Dict[str, bool]:
    return {"restart_required": await service.is_restart_required()}


@router.get("/system/events")
async def lifecycle_events(
    limit: int = 100,
    filter: Optional[str] = None,
    event_bus: EventBus = Depends(get_event_bus),
) -> Dict[str, Any]:
    """Recent lifecycle events (installed/failed/disabled...)."""
    logs = event_bus.get_logs(limit=limit, event_filter=filter)
    return {"events": logs, "count": len(logs)}
