"""Web Push message encryption (RFC 8291) using the aes128gcm content coding (RFC 8188)."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass

from herday.webpush.encoding import b64url_decode, concat_bytes
from herday.webpush.errors import InvalidKeyMaterialError
from herday.webpush.primitives import aes128gcm_encrypt, ecdh_shared_secret, generate_ecdh_key_pair, hkdf_sha256, load_public_key, public_key_bytes

RECORD_SIZE = 4096
SALT_LENGTH = 16
AUTH_SECRET_LENGTH = 16
LAST_RECORD_DELIMITER = b"\x02"

KEY_INFO_PREFIX = b"WebPush: info\x00"
CEK_INFO = b"Content-Encoding: aes128gcm\x00"
NONCE_INFO = b"Content-Encoding: nonce\x00"


@dataclass(frozen=True)
class EncryptedPushMessage:
  """A single-record aes128gcm message; built fresh for every delivery attempt."""

  salt: bytes
  record_size: int
  sender_public_key: bytes
  ciphertext: bytes

  def to_bytes(self) -> bytes:
    """Serialise as salt || rs || idlen || keyid || ciphertext."""
    header = struct.pack("!16sIB", self.salt, self.record_size, len(self.sender_public_key))
    return concat_bytes(header, self.sender_public_key, self.ciphertext)


def encrypt_push_payload(p256dh: str | bytes, auth_secret: str | bytes, plaintext: str | bytes) -> EncryptedPushMessage:
  """Encrypt `plaintext` for the subscriber identified by its p256dh key and auth secret.

  Keys may be given as base64url strings (as stored) or raw bytes. Every call draws
  a new ephemeral key pair and salt, so two encryptions of the same payload never
  share key material.
  """
  subscriber_public_raw = b64url_decode(p256dh) if isinstance(p256dh, str) else p256dh
  auth = b64url_decode(auth_secret) if isinstance(auth_secret, str) else auth_secret
  data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext

  if len(auth) != AUTH_SECRET_LENGTH:
    raise InvalidKeyMaterialError(f"Auth secret must be {AUTH_SECRET_LENGTH} bytes, got {len(auth)}.")

  subscriber_public_key = load_public_key(subscriber_public_raw)

  ephemeral_key = generate_ecdh_key_pair()
  ephemeral_public_raw = public_key_bytes(ephemeral_key.public_key())
  shared_secret = ecdh_shared_secret(ephemeral_key, subscriber_public_key)

  # The auth secret binds the key to this subscription; both public keys bind it to this exchange.
  key_info = concat_bytes(KEY_INFO_PREFIX, subscriber_public_raw, ephemeral_public_raw)
  ikm = hkdf_sha256(salt=auth, ikm=shared_secret, info=key_info, length=32)

  salt = os.urandom(SALT_LENGTH)
  content_key = hkdf_sha256(salt=salt, ikm=ikm, info=CEK_INFO, length=16)
  nonce = hkdf_sha256(salt=salt, ikm=ikm, info=NONCE_INFO, length=12)

  ciphertext = aes128gcm_encrypt(key=content_key, nonce=nonce, plaintext=data + LAST_RECORD_DELIMITER)

  return EncryptedPushMessage(salt=salt, record_size=RECORD_SIZE, sender_public_key=ephemeral_public_raw, ciphertext=ciphertext)
