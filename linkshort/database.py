"""Database engine and session factory for the link shortener.

This module provides the SQLAlchemy async engine setup over the embedded
SQLite database (aiosqlite driver) and the declarative base shared by all
models.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │  LinkStore  │
    │  operation  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ sessionmaker│
    │ new session │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ execute +   │
    │ commit      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Auto-close   │
    │ (async with) │
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine**::
    engine = build_engine(settings.DATABASE_URL, echo=False)
    sessions = build_sessionmaker(engine)

**Step 2 — Create tables (idempotent)**::
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

**Step 3 — Cleanup on shutdown**::
    await engine.dispose()

Key Behaviours
===============
- Engines are built per application instance; there is no module-level engine.
- Sessions do not expire objects on commit.
- pool_pre_ping guards against stale connections.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    build_engine():  Creates the async engine for a database URL.
    build_sessionmaker():  Creates the session factory bound to an engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

__all__ = ["Base", "build_engine", "build_sessionmaker"]


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
