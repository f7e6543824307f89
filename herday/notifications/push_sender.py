"""Web Push delivery over HTTP."""

from __future__ import annotations

import logging

import httpx

from herday.notifications.contracts import DeliveryOutcome, DeliveryResult, PushPayload, PushSubscription
from herday.webpush.encryption import encrypt_push_payload
from herday.webpush.vapid import VapidKeyPair, audience_for_endpoint, build_vapid_headers

logger = logging.getLogger(__name__)


class WebPushSender:
  """Signs, encrypts and POSTs one message per call; never retries."""

  def __init__(self, *, vapid_keys: VapidKeyPair, client: httpx.AsyncClient, ttl_seconds: int = 86400, urgency: str = "normal", timeout_seconds: float = 10.0) -> None:
    self._vapid_keys = vapid_keys
    self._client = client
    self._ttl_seconds = ttl_seconds
    self._urgency = urgency
    self._timeout_seconds = timeout_seconds

  def build_request_headers(self, endpoint: str) -> dict[str, str]:
    """Headers for one push request; the VAPID token is scoped to the endpoint's origin."""
    vapid_headers = build_vapid_headers(audience_for_endpoint(endpoint), self._vapid_keys)
    return {
      "Authorization": vapid_headers.authorization,
      "Crypto-Key": vapid_headers.crypto_key,
      "Content-Type": "application/octet-stream",
      "Content-Encoding": "aes128gcm",
      "TTL": str(self._ttl_seconds),
      "Urgency": self._urgency,
    }

  async def send(self, subscription: PushSubscription, payload: PushPayload) -> DeliveryResult:
    """Deliver `payload` once. Crypto and configuration errors propagate to the caller."""
    headers = self.build_request_headers(subscription.endpoint)
    body = encrypt_push_payload(subscription.p256dh, subscription.auth, payload.to_json()).to_bytes()

    try:
      response = await self._client.post(subscription.endpoint, content=body, headers=headers, timeout=self._timeout_seconds)
    except httpx.RequestError as exc:
      # Timeouts, DNS and connection failures all land here.
      logger.warning("Push service unreachable error_type=%s error=%s", type(exc).__name__, exc)
      return DeliveryResult(outcome=DeliveryOutcome.UNREACHABLE, reason=str(exc) or type(exc).__name__)

    if response.is_success:
      return DeliveryResult(outcome=DeliveryOutcome.DELIVERED, status_code=response.status_code, reason=response.reason_phrase)

    # 404/410 usually mean the subscription expired; 413 an oversized payload.
    return DeliveryResult(outcome=DeliveryOutcome.REJECTED, status_code=response.status_code, reason=response.reason_phrase)
