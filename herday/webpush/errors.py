"""Exceptions raised by the Web Push crypto layer."""

from __future__ import annotations


class WebPushCryptoError(Exception):
  """Base class for key handling and encryption failures."""


class InvalidKeyMaterialError(WebPushCryptoError):
  """Raised when raw key bytes cannot be decoded or imported."""


class VapidKeyError(WebPushCryptoError):
  """Raised when the configured VAPID key pair is malformed or inconsistent."""
