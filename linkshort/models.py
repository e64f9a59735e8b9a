"""SQLAlchemy ORM models for the link shortener.

Data Model Layout
=================
::
    links table
    ├─ id (INTEGER PRIMARY KEY AUTOINCREMENT)
    ├─ short_path (TEXT NOT NULL UNIQUE, unique index links_short_path)
    ├─ long_url (TEXT NOT NULL)
    ├─ create_ts (BIGINT NOT NULL, unix seconds)
    ├─ create_ip (TEXT NOT NULL)
    └─ create_forwarded_for (TEXT)

    follows table
    ├─ id (INTEGER PRIMARY KEY AUTOINCREMENT)
    ├─ short_path (TEXT NOT NULL, not a declared foreign key)
    ├─ ts (BIGINT NOT NULL, unix seconds)
    ├─ ip (TEXT NOT NULL)
    └─ forwarded_for (TEXT)

Key Behaviours
===============
- The UNIQUE constraint on links.short_path is what makes optimistic
  insert-and-retry in the path generator safe.
- Links are immutable once written; follows are append-only.

Classes:
    Link:  A short path to long URL mapping with creation metadata.
    Follow:  One recorded redirect of a short path.
"""

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from linkshort.database import Base

__all__ = ["Link", "Follow"]


class Link(Base):
    __tablename__ = "links"
    __table_args__ = (Index("links_short_path", "short_path", unique=True),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    short_path: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    long_url: Mapped[str] = mapped_column(Text, nullable=False)
    create_ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    create_ip: Mapped[str] = mapped_column(Text, nullable=False)
    create_forwarded_for: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, short_path='{self.short_path}')>"


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    short_path: Mapped[str] = mapped_column(Text, nullable=False)
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ip: Mapped[str] = mapped_column(Text, nullable=False)
    forwarded_for: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Follow(id={self.id}, short_path='{self.short_path}', ts={self.ts})>"
