"""Contracts for deferred push notification delivery."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PushSubscription:
  """Browser-issued subscription: endpoint plus base64url p256dh key and auth secret."""

  endpoint: str
  p256dh: str
  auth: str


@dataclass(frozen=True)
class PushPayload:
  """Notification content shown by the service worker."""

  title: str
  body: str
  url: str = "/"

  def to_json(self) -> str:
    return json.dumps({"title": self.title, "body": self.body, "url": self.url}, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ScheduleEntry:
  """A pending notification row; `id` is derived from `endpoint`."""

  id: str
  endpoint: str
  p256dh: str
  auth: str
  notify_at: int
  title: str
  body: str
  created_at: int

  def subscription(self) -> PushSubscription:
    return PushSubscription(endpoint=self.endpoint, p256dh=self.p256dh, auth=self.auth)


class DeliveryOutcome(enum.StrEnum):
  DELIVERED = "delivered"
  REJECTED = "rejected"
  UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class DeliveryResult:
  """Outcome of a single POST to a push service."""

  outcome: DeliveryOutcome
  status_code: int | None = None
  reason: str = ""

  @property
  def delivered(self) -> bool:
    return self.outcome is DeliveryOutcome.DELIVERED


class PushSender(Protocol):
  """Delivery contract for sending push notifications."""

  async def send(self, subscription: PushSubscription, payload: PushPayload) -> DeliveryResult:
    """Make exactly one delivery attempt."""
