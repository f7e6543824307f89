"""SQLAlchemy model for pending one-shot push notifications."""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from herday.core.database import Base


class PushSchedule(Base):
  """One pending notification per push subscription endpoint."""

  __tablename__ = "push_schedules"
  __table_args__ = (Index("ix_push_schedules_notify_at", "notify_at"),)

  # sha256(endpoint) hex digest
  id: Mapped[str] = mapped_column(String(64), primary_key=True)
  endpoint: Mapped[str] = mapped_column(Text, nullable=False)
  p256dh: Mapped[str] = mapped_column(Text, nullable=False)
  auth: Mapped[str] = mapped_column(Text, nullable=False)
  notify_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
  title: Mapped[str] = mapped_column(Text, nullable=False)
  body: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
