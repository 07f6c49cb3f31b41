from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .constants import DB_MAX_OVERFLOW, DB_POOL_PRE_PING, DB_POOL_RECYCLE, DB_POOL_SIZE

logger = logging.getLogger(__name__)

# Base для моделей (используется в models.py)
Base = declarative_base()


def to_async_url(db_url: str) -> str:
    """Конвертировать синхронный URL БД в async вариант."""
    if db_url.startswith("sqlite:///") or db_url == "sqlite://":
        # Для SQLite используем aiosqlite
        return db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if db_url.startswith("postgresql://"):
        # Для PostgreSQL используем asyncpg
        return db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if db_url.startswith("postgresql+psycopg2://"):
        return db_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    return db_url


def to_sync_url(db_url: str) -> str:
    """Обратная конвертация для Alembic, который работает синхронно."""
    if db_url.startswith("sqlite+aiosqlite://"):
        return db_url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    if db_url.startswith("postgresql+asyncpg://"):
        return db_url.replace("postgresql+asyncpg://", "postgresql+psycopg2://", 1)
    return db_url


def create_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """Создать async engine для указанного URL."""
    async_db_url = to_async_url(db_url)

    if async_db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory SQLite живет только в рамках одного соединения
        if async_db_url in ("sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {
            "pool_size": DB_POOL_SIZE,
            "max_overflow": DB_MAX_OVERFLOW,
            "pool_recycle": DB_POOL_RECYCLE,
            "pool_pre_ping": DB_POOL_PRE_PING,
        }

    return create_async_engine(async_db_url, echo=echo, future=True, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Создать таблицы хоста, если их нет (без Alembic)."""
    # Регистрируем модели в Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def session_scope(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """
    Async context manager для получения сессии БД.

    Использование:
        async with session_scope(session_maker) as db:
            result = await db.execute(select(Extension))
            records = result.scalars().all()

    Автоматически коммитит транзакцию при успехе или откатывает при ошибке.
    """
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database error: {e}")
            raise
        except Exception:
            await session.rollback()
            raise
