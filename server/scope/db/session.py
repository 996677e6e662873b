from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker

# Import table definitions so they register on SQLModel.metadata
from scope.db import models  # noqa: F401

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None


def configure_engine(database_url: str) -> AsyncEngine:
    """(Re)bind the module engine and session factory to ``database_url``."""
    global engine, AsyncSessionLocal
    engine = create_async_engine(database_url, echo=False, future=True)
    AsyncSessionLocal = sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    return engine


async def init_db() -> None:
    if engine is None:
        raise RuntimeError("Database engine is not configured")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_db() -> None:
    if engine is not None:
        await engine.dispose()


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    if AsyncSessionLocal is None:
        raise RuntimeError("Database engine is not configured")
    session: AsyncSession = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
