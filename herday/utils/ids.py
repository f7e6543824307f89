"""Identifier utilities."""

from __future__ import annotations

import hashlib


def schedule_id_for_endpoint(endpoint: str) -> str:
  """Return the stable schedule id for a push endpoint (SHA-256, lowercase hex)."""
  return hashlib.sha256(endpoint.encode("utf-8")).hexdigest()


def short_id(schedule_id: str) -> str:
  """Return a log-friendly prefix of a schedule id."""
  return schedule_id[:12]
