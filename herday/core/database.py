from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from herday.config import get_database_settings


class Base(DeclarativeBase):
  pass


engine: AsyncEngine | None = None
SessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_db_engine() -> AsyncEngine:
  global engine
  if engine is None:
    settings = get_database_settings()
    engine = create_async_engine(settings.database_url, echo=settings.debug)
  return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
  global SessionLocal
  if SessionLocal is None:
    SessionLocal = async_sessionmaker(bind=get_db_engine(), expire_on_commit=False, class_=AsyncSession)
  return SessionLocal


async def init_models() -> None:
  """Create any missing tables for the registered models."""
  # Register models on Base.metadata before create_all runs.
  import herday.schema.push_schedules  # noqa: F401

  async with get_db_engine().begin() as connection:
    await connection.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
  """Close pooled connections and forget the engine so the next call rebuilds it."""
  global engine, SessionLocal
  if engine is not None:
    await engine.dispose()
  engine = None
  SessionLocal = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
  """Dependency to get a database session."""
  async with get_session_factory()() as session:
    yield session
