"""Async engine, session factory and unique-constraint helpers.

PostgreSQL is the only authority for quote / bet / session state; the
unique constraints declared in alembic/ are the concurrency backstop that
the repositories translate into domain conflicts.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Shared declarative base for the DDL-reference ORM models."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


def violated_constraint(exc: IntegrityError) -> str | None:
    """Name of the constraint behind an IntegrityError, if the driver reports one.

    asyncpg exposes ``constraint_name`` on the wrapped exception; fall back to
    scanning the message for drivers that do not.
    """
    orig = getattr(exc, "orig", None)
    name = getattr(orig, "constraint_name", None)
    if name is None:
        cause = getattr(orig, "__cause__", None)
        name = getattr(cause, "constraint_name", None)
    if name:
        return str(name)
    text_repr = str(orig if orig is not None else exc)
    for token in text_repr.replace('"', " ").split():
        if token.startswith("uq_"):
            return token
    return None
