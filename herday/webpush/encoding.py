"""Byte helpers shared by the VAPID and aes128gcm code."""

from __future__ import annotations

import base64
import binascii

from herday.webpush.errors import InvalidKeyMaterialError


def b64url_encode(data: bytes) -> str:
  """URL-safe base64 without padding."""
  return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
  """Decode URL-safe base64, tolerating missing padding and the standard alphabet."""
  normalized = value.strip().replace("+", "-").replace("/", "_").rstrip("=")
  padded = normalized + "=" * (-len(normalized) % 4)
  try:
    return base64.b64decode(padded, altchars=b"-_", validate=True)
  except (binascii.Error, ValueError) as exc:
    raise InvalidKeyMaterialError(f"Invalid base64url value: {exc}") from exc


def concat_bytes(*parts: bytes) -> bytes:
  return b"".join(parts)
