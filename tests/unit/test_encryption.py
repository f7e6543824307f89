from __future__ import annotations

import os
import struct

import http_ece
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from herday.webpush.encoding import b64url_encode
from herday.webpush.encryption import RECORD_SIZE, encrypt_push_payload
from herday.webpush.errors import InvalidKeyMaterialError


def _hkdf(salt: bytes, ikm: bytes, info: bytes, length: int) -> bytes:
  return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def _raw_point(private_key: ec.EllipticCurvePrivateKey) -> bytes:
  return private_key.public_key().public_bytes(encoding=serialization.Encoding.X962, format=serialization.PublicFormat.UncompressedPoint)


@pytest.mark.parametrize("size", [1, 15, 16, 100, 1024, 2048])
def test_round_trip_with_reference_decoder(subscriber, size):
  plaintext = os.urandom(size)
  message = encrypt_push_payload(subscriber.p256dh, subscriber.auth, plaintext).to_bytes()

  decrypted = http_ece.decrypt(message, private_key=subscriber.private_key, auth_secret=subscriber.auth_secret, version="aes128gcm")
  assert decrypted == plaintext


def test_accepts_raw_key_bytes_and_text(subscriber):
  message = encrypt_push_payload(_raw_point(subscriber.private_key), subscriber.auth_secret, '{"title":"Hi"}').to_bytes()

  decrypted = http_ece.decrypt(message, private_key=subscriber.private_key, auth_secret=subscriber.auth_secret, version="aes128gcm")
  assert decrypted == b'{"title":"Hi"}'


def test_header_layout_and_manual_decrypt(subscriber):
  plaintext = "Time to check your cycle!".encode("utf-8")
  body = encrypt_push_payload(subscriber.p256dh, subscriber.auth, plaintext).to_bytes()

  salt, record_size, id_length = struct.unpack("!16sIB", body[:21])
  sender_point = body[21 : 21 + id_length]
  ciphertext = body[21 + id_length :]

  assert record_size == RECORD_SIZE
  assert id_length == 65
  assert sender_point[0] == 0x04
  assert len(ciphertext) == len(plaintext) + 1 + 16

  # Receiver side of RFC 8291, written out independently of the sender code.
  sender_public = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), sender_point)
  shared = subscriber.private_key.exchange(ec.ECDH(), sender_public)
  ikm = _hkdf(subscriber.auth_secret, shared, b"WebPush: info\x00" + _raw_point(subscriber.private_key) + sender_point, 32)
  cek = _hkdf(salt, ikm, b"Content-Encoding: aes128gcm\x00", 16)
  nonce = _hkdf(salt, ikm, b"Content-Encoding: nonce\x00", 12)

  padded = AESGCM(cek).decrypt(nonce, ciphertext, None)
  assert padded == plaintext + b"\x02"


def test_two_encryptions_never_share_key_material(subscriber):
  first = encrypt_push_payload(subscriber.p256dh, subscriber.auth, b"same payload")
  second = encrypt_push_payload(subscriber.p256dh, subscriber.auth, b"same payload")

  assert first.salt != second.salt
  assert first.sender_public_key != second.sender_public_key
  assert first.ciphertext != second.ciphertext


def test_rejects_short_auth_secret(subscriber):
  with pytest.raises(InvalidKeyMaterialError):
    encrypt_push_payload(subscriber.p256dh, b64url_encode(b"\x01" * 8), b"x")


def test_rejects_invalid_subscriber_key(subscriber):
  with pytest.raises(InvalidKeyMaterialError):
    encrypt_push_payload(b64url_encode(b"\x04" + b"\x00" * 64), subscriber.auth, b"x")


def test_rejects_non_base64_keys(subscriber):
  with pytest.raises(InvalidKeyMaterialError):
    encrypt_push_payload("not-valid-***", subscriber.auth, b"x")
