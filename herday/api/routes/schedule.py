"""Routes for scheduling, cancelling and inspecting deferred push notifications."""

from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from herday.config import Settings, get_settings
from herday.notifications.contracts import ScheduleEntry
from herday.notifications.schedule_repo import ScheduleRepository
from herday.utils.ids import schedule_id_for_endpoint, short_id
from herday.utils.timestamps import parse_iso8601, to_iso8601
from herday.webpush.encoding import b64url_decode
from herday.webpush.errors import InvalidKeyMaterialError
from herday.webpush.primitives import load_public_key

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_ENDPOINT_LENGTH = 2048
MAX_TITLE_LENGTH = 200
MAX_BODY_LENGTH = 1000


def _validate_endpoint(value: str) -> str:
  normalized = value.strip()
  if not normalized:
    raise ValueError("endpoint is required")

  parsed = urllib.parse.urlsplit(normalized)
  if parsed.scheme.lower() != "https" or not parsed.hostname:
    raise ValueError("endpoint must be an absolute https URL")

  return normalized


class PushSubscriptionKeys(BaseModel):
  """Browser-provided key material for Web Push encryption."""

  p256dh: str = Field(max_length=512)
  auth: str = Field(max_length=256)

  @field_validator("p256dh")
  @classmethod
  def validate_p256dh(cls, value: str) -> str:
    """Require a base64url uncompressed P-256 point that lies on the curve."""
    normalized = value.strip()
    try:
      load_public_key(b64url_decode(normalized))
    except InvalidKeyMaterialError as exc:
      raise ValueError("subscription.keys.p256dh must be a base64url P-256 public key") from exc

    return normalized

  @field_validator("auth")
  @classmethod
  def validate_auth(cls, value: str) -> str:
    """Require a base64url 16-byte auth secret."""
    normalized = value.strip()
    try:
      raw = b64url_decode(normalized)
    except InvalidKeyMaterialError as exc:
      raise ValueError("subscription.keys.auth must be base64url encoded") from exc

    if len(raw) != 16:
      raise ValueError("subscription.keys.auth must decode to 16 bytes")

    return normalized


class PushSubscriptionPayload(BaseModel):
  """Standard browser push subscription object (`PushSubscription.toJSON()`)."""

  endpoint: str = Field(max_length=MAX_ENDPOINT_LENGTH)
  # DOMHighResTimeStamp; browsers may send fractional milliseconds. Not stored.
  expiration_time: float | None = Field(default=None, alias="expirationTime")
  keys: PushSubscriptionKeys
  model_config = ConfigDict(populate_by_name=True)

  @field_validator("endpoint")
  @classmethod
  def validate_endpoint(cls, value: str) -> str:
    return _validate_endpoint(value)


class ScheduleRequest(BaseModel):
  """Schedule (or reschedule) the single pending notification for a subscription."""

  subscription: PushSubscriptionPayload
  notify_at: int = Field(alias="notifyAt")
  title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
  body: str | None = Field(default=None, max_length=MAX_BODY_LENGTH)
  model_config = ConfigDict(populate_by_name=True)

  @field_validator("notify_at", mode="before")
  @classmethod
  def parse_notify_at(cls, value: Any) -> int:
    """Accept ISO 8601 strings only; numbers are ambiguous between seconds and milliseconds."""
    if not isinstance(value, str):
      raise ValueError("notifyAt must be an ISO 8601 date string")

    try:
      notify_at = parse_iso8601(value)
    except (ValueError, OverflowError) as exc:
      raise ValueError("Invalid notifyAt date") from exc

    if notify_at <= 0:
      raise ValueError("Invalid notifyAt date")

    # Offsets can push the UTC value past year 9999, which cannot be rendered back.
    try:
      to_iso8601(notify_at)
    except (ValueError, OverflowError, OSError) as exc:
      raise ValueError("Invalid notifyAt date") from exc

    return notify_at


class EndpointRequest(BaseModel):
  """Identify a schedule by its subscription endpoint."""

  endpoint: str = Field(max_length=MAX_ENDPOINT_LENGTH)

  @field_validator("endpoint")
  @classmethod
  def validate_endpoint(cls, value: str) -> str:
    normalized = value.strip()
    if not normalized:
      raise ValueError("endpoint is required")
    return normalized


def get_schedule_repository() -> ScheduleRepository:
  return ScheduleRepository()


@router.get("/vapid-public-key")
async def get_vapid_public_key(settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, str]:
  """Return the key browsers pass as `applicationServerKey`."""
  return {"publicKey": settings.vapid_public_key}


@router.post("/schedule")
async def create_schedule(payload: ScheduleRequest, settings: Annotated[Settings, Depends(get_settings)], repo: Annotated[ScheduleRepository, Depends(get_schedule_repository)]) -> dict[str, Any]:
  """Create or replace the pending notification for the submitted subscription."""
  now = int(time.time())
  if payload.notify_at <= now:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="notifyAt must be in the future")

  subscription = payload.subscription
  entry = ScheduleEntry(
    id=schedule_id_for_endpoint(subscription.endpoint),
    endpoint=subscription.endpoint,
    p256dh=subscription.keys.p256dh,
    auth=subscription.keys.auth,
    notify_at=payload.notify_at,
    title=payload.title or settings.default_title,
    body=payload.body or settings.default_body,
    created_at=now,
  )

  try:
    await repo.upsert(entry)
  except Exception as exc:  # noqa: BLE001
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save push schedule") from exc

  logger.info("Scheduled push id=%s notify_at=%s", short_id(entry.id), entry.notify_at)
  return {"ok": True, "notifyAt": to_iso8601(entry.notify_at)}


@router.delete("/schedule")
async def delete_schedule(payload: EndpointRequest, repo: Annotated[ScheduleRepository, Depends(get_schedule_repository)]) -> dict[str, bool]:
  """Remove the pending notification for an endpoint; idempotent."""
  try:
    removed = await repo.remove(payload.endpoint)
  except Exception as exc:  # noqa: BLE001
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete push schedule") from exc

  if removed:
    logger.info("Removed push schedule id=%s", short_id(schedule_id_for_endpoint(payload.endpoint)))
  return {"ok": True}


@router.post("/schedule/status")
async def get_schedule_status(payload: EndpointRequest, repo: Annotated[ScheduleRepository, Depends(get_schedule_repository)]) -> dict[str, Any]:
  """Report whether a notification is still pending (not yet due or not yet attempted)."""
  try:
    entry = await repo.get(payload.endpoint)
  except Exception as exc:  # noqa: BLE001
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load push schedule") from exc

  if entry is None:
    return {"scheduled": False}

  return {"scheduled": True, "notifyAt": to_iso8601(entry.notify_at), "title": entry.title, "body": entry.body}
