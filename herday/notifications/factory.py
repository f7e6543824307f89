"""Factory helpers for push delivery."""

from __future__ import annotations

import httpx

from herday.config import Settings
from herday.notifications.dispatcher import PushDispatcher
from herday.notifications.push_sender import WebPushSender
from herday.notifications.schedule_repo import ScheduleRepository
from herday.webpush.vapid import VapidKeyPair


def vapid_keys_from_settings(settings: Settings) -> VapidKeyPair:
  return VapidKeyPair(public_key=settings.vapid_public_key, private_key=settings.vapid_private_key, subject=settings.vapid_subject)


def build_push_sender(settings: Settings, *, client: httpx.AsyncClient) -> WebPushSender:
  """Construct the Web Push sender from environment configuration."""
  return WebPushSender(vapid_keys=vapid_keys_from_settings(settings), client=client, ttl_seconds=settings.push_ttl_seconds, urgency=settings.push_urgency, timeout_seconds=settings.push_timeout_seconds)


def build_dispatcher(settings: Settings, *, client: httpx.AsyncClient, schedule_repo: ScheduleRepository | None = None) -> PushDispatcher:
  """Wire the store and sender into a dispatcher for one or more sweeps."""
  return PushDispatcher(schedule_repo=schedule_repo or ScheduleRepository(), push_sender=build_push_sender(settings, client=client), click_url=settings.push_click_url)
