"""Durable storage of links and follow events.

This module wraps the async SQLAlchemy engine behind the two operations the
core needs (insert a link or reject a duplicate, look a link up) plus the
append-only follow log.

Flow Diagram — insert_link()
============================
::
    ┌─────────────┐
    │ insert_link │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT INTO │
    │ links       │
    └──────┬──────┘
    UNIQUE OK?  │
    ┌─────┴──────────────┐
    │ YES                 │ NO
    ▼                     ▼
┌─────────┐        ┌──────────────┐
│ COMMIT  │        │ IntegrityError│
│ return  │        │ → Duplicate-  │
└─────────┘        │ ShortPathError│
                   └──────────────┘

How to Use
===========
**Step 1 — Create on startup**::
    store = LinkStore.from_url(settings.DATABASE_URL)
    await store.create_tables()

**Step 2 — Insert and read**::
    await store.insert_link("q1Zx_9aB", "https://example.com", ts, ip, None)
    long_url = await store.lookup_link("q1Zx_9aB")

**Step 3 — Cleanup on shutdown**::
    await store.close()

Key Behaviours
===============
- create_tables() is idempotent and runs on every startup.
- Duplicate short paths are rejected atomically by the UNIQUE constraint.
- Every SQLAlchemy failure surfaces as StorageError (or a subclass) so that
  callers never deal with driver exceptions.
"""

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from linkshort.database import Base, build_engine, build_sessionmaker
from linkshort.errors import DuplicateShortPathError, LinkNotFoundError, StorageError
from linkshort.models import Follow, Link
from linkshort.schemas import FollowEvent

__all__ = ["LinkStore"]


class LinkStore:
    """Link and follow persistence over one embedded database."""

    def __init__(self, engine: AsyncEngine, sessions: async_sessionmaker[AsyncSession] | None = None):
        self._engine = engine
        self._sessions = sessions or build_sessionmaker(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "LinkStore":
        return cls(build_engine(database_url, echo=echo))

    async def create_tables(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def insert_link(
        self,
        short_path: str,
        long_url: str,
        ts: int,
        ip: str,
        forwarded_for: str | None,
    ) -> None:
        """Insert a new link, or raise DuplicateShortPathError if the path is taken.

        Raises:
            DuplicateShortPathError: short_path already exists.
            StorageError: any other database failure.
        """
        link = Link(
            short_path=short_path,
            long_url=long_url,
            create_ts=ts,
            create_ip=ip,
            create_forwarded_for=forwarded_for,
        )
        try:
            async with self._sessions() as session:
                session.add(link)
                await session.commit()
        except IntegrityError as exc:
            raise DuplicateShortPathError(f"short path {short_path!r} already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def lookup_link(self, short_path: str) -> str:
        """Return the long URL for short_path.

        Raises:
            LinkNotFoundError: no link has this short path.
            StorageError: any other database failure.
        """
        try:
            async with self._sessions() as session:
                result = await session.execute(select(Link.long_url).where(Link.short_path == short_path))
                long_url = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

        if long_url is None:
            raise LinkNotFoundError()
        return long_url

    async def insert_follow(self, event: FollowEvent) -> None:
        follow = Follow(
            short_path=event.short_path,
            ts=event.ts,
            ip=event.ip,
            forwarded_for=event.forwarded_for,
        )
        try:
            async with self._sessions() as session:
                session.add(follow)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def count_links(self) -> int:
        try:
            async with self._sessions() as session:
                result = await session.execute(select(func.count()).select_from(Link))
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def count_follows(self, short_path: str) -> int:
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    select(func.count()).select_from(Follow).where(Follow.short_path == short_path)
                )
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def ping(self) -> None:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def close(self) -> None:
        await self._engine.dispose()
