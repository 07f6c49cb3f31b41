import sqlalchemy as sa
from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncEngine

from .tables import galleries


def build_router(engine: AsyncEngine) -> APIRouter:
    router = APIRouter(prefix="/gallery", tags=["gallery"])

    @router.get("/status")
    async def gallery_status():
        async with engine.connect() as conn:
            total = await conn.scalar(sa.select(sa.func.count()).select_from(galleries))
        return {"extension": "gallery", "galleries": total or 0}

    return router
