"""Web Push crypto: VAPID signing and aes128gcm payload encryption."""

from herday.webpush.encryption import EncryptedPushMessage, encrypt_push_payload
from herday.webpush.errors import InvalidKeyMaterialError, VapidKeyError, WebPushCryptoError
from herday.webpush.vapid import VapidHeaders, VapidKeyPair, audience_for_endpoint, build_vapid_headers, create_vapid_jwt, generate_vapid_key_pair

__all__ = [
  "EncryptedPushMessage",
  "InvalidKeyMaterialError",
  "VapidHeaders",
  "VapidKeyError",
  "VapidKeyPair",
  "WebPushCryptoError",
  "audience_for_endpoint",
  "build_vapid_headers",
  "create_vapid_jwt",
  "encrypt_push_payload",
  "generate_vapid_key_pair",
]
