"""Repository for pending push schedules."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from herday.core.database import get_session_factory
from herday.notifications.contracts import ScheduleEntry
from herday.schema.push_schedules import PushSchedule
from herday.utils.ids import schedule_id_for_endpoint

_UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


class ScheduleRepository:
  """Persist at most one pending schedule per subscription endpoint."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory

  def _sessions(self) -> async_sessionmaker[AsyncSession]:
    return self._session_factory or get_session_factory()

  async def upsert(self, entry: ScheduleEntry) -> None:
    """Insert the entry or fully replace the row with the same id."""
    async with self._sessions()() as session:
      await self._upsert_with_session(session=session, entry=entry)

  async def _upsert_with_session(self, *, session: AsyncSession, entry: ScheduleEntry) -> None:
    values = {
      "id": entry.id,
      "endpoint": entry.endpoint,
      "p256dh": entry.p256dh,
      "auth": entry.auth,
      "notify_at": entry.notify_at,
      "title": entry.title,
      "body": entry.body,
      "created_at": entry.created_at,
    }
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
      # Portable fallback for dialects without ON CONFLICT.
      await session.merge(PushSchedule(**values))
    else:
      stmt = insert(PushSchedule).values(**values)
      stmt = stmt.on_conflict_do_update(index_elements=["id"], set_={key: value for key, value in values.items() if key != "id"})
      await session.execute(stmt)
    await session.commit()

  async def get(self, endpoint: str) -> ScheduleEntry | None:
    """Return the pending schedule for an endpoint, if any."""
    async with self._sessions()() as session:
      row = await session.get(PushSchedule, schedule_id_for_endpoint(endpoint))
      return _to_entry(row) if row is not None else None

  async def remove(self, endpoint: str) -> bool:
    """Delete the schedule for an endpoint; deleting a missing row is not an error."""
    return await self.remove_by_id(schedule_id_for_endpoint(endpoint))

  async def remove_by_id(self, schedule_id: str) -> bool:
    """Delete one row by id and report whether it existed."""
    async with self._sessions()() as session:
      result = await session.execute(delete(PushSchedule).where(PushSchedule.id == schedule_id))
      await session.commit()
      return bool(result.rowcount)

  async def due_before(self, timestamp: int) -> list[ScheduleEntry]:
    """Return every row with notify_at <= timestamp (no ordering guarantee)."""
    async with self._sessions()() as session:
      result = await session.execute(select(PushSchedule).where(PushSchedule.notify_at <= timestamp))
      return [_to_entry(row) for row in result.scalars().all()]


def _to_entry(row: PushSchedule) -> ScheduleEntry:
  return ScheduleEntry(id=row.id, endpoint=row.endpoint, p256dh=row.p256dh, auth=row.auth, notify_at=row.notify_at, title=row.title, body=row.body, created_at=row.created_at)
