"""Conversions between unix timestamps and ISO 8601 strings."""

from __future__ import annotations

import datetime


def parse_iso8601(raw: str) -> int:
  """Parse an ISO 8601 date/time into unix seconds; naive values are read as UTC."""
  value = raw.strip()
  if not value:
    raise ValueError("empty timestamp")

  # Accept the lowercase designator some clients emit.
  if value[-1] in {"z", "Z"}:
    value = value[:-1] + "+00:00"

  parsed = datetime.datetime.fromisoformat(value)
  if parsed.tzinfo is None:
    parsed = parsed.replace(tzinfo=datetime.UTC)

  return int(parsed.timestamp())


def to_iso8601(timestamp: float) -> str:
  """Format unix seconds as UTC ISO 8601 with millisecond precision and a Z suffix."""
  moment = datetime.datetime.fromtimestamp(timestamp, tz=datetime.UTC)
  return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
