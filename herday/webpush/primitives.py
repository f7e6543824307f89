"""Elliptic-curve, KDF and AEAD primitives used by Web Push, built on `cryptography`."""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from herday.webpush.errors import InvalidKeyMaterialError

CURVE = ec.SECP256R1()
UNCOMPRESSED_POINT_LENGTH = 65
PRIVATE_SCALAR_LENGTH = 32
COORDINATE_LENGTH = 32


def hkdf_sha256(*, salt: bytes, ikm: bytes, info: bytes, length: int) -> bytes:
  """HKDF-SHA256 extract-and-expand."""
  return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def generate_ecdh_key_pair() -> ec.EllipticCurvePrivateKey:
  """Generate a fresh P-256 key pair; the public half is reachable via `.public_key()`."""
  return ec.generate_private_key(CURVE)


def ecdh_shared_secret(private_key: ec.EllipticCurvePrivateKey, peer_public_key: ec.EllipticCurvePublicKey) -> bytes:
  return private_key.exchange(ec.ECDH(), peer_public_key)


def public_key_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
  """Export a public key as a 65-byte uncompressed X9.62 point."""
  return key.public_bytes(encoding=serialization.Encoding.X962, format=serialization.PublicFormat.UncompressedPoint)


def private_key_bytes(key: ec.EllipticCurvePrivateKey) -> bytes:
  """Export a private key as a 32-byte big-endian scalar."""
  return key.private_numbers().private_value.to_bytes(PRIVATE_SCALAR_LENGTH, "big")


def load_public_key(raw_point: bytes) -> ec.EllipticCurvePublicKey:
  """Import a raw uncompressed P-256 point (0x04 || X || Y)."""
  if len(raw_point) != UNCOMPRESSED_POINT_LENGTH or raw_point[0] != 0x04:
    raise InvalidKeyMaterialError(f"Expected a {UNCOMPRESSED_POINT_LENGTH}-byte uncompressed P-256 point, got {len(raw_point)} bytes.")

  try:
    return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw_point)
  except (ValueError, UnsupportedAlgorithm) as exc:
    raise InvalidKeyMaterialError(f"Point is not on the P-256 curve: {exc}") from exc


def load_private_key(scalar: bytes, public_point: bytes | None = None) -> ec.EllipticCurvePrivateKey:
  """Rebuild a P-256 private key from its raw scalar, optionally checking it against a raw public point."""
  if len(scalar) != PRIVATE_SCALAR_LENGTH:
    raise InvalidKeyMaterialError(f"Expected a {PRIVATE_SCALAR_LENGTH}-byte private scalar, got {len(scalar)} bytes.")

  try:
    private_key = ec.derive_private_key(int.from_bytes(scalar, "big"), CURVE)
  except (ValueError, TypeError) as exc:
    raise InvalidKeyMaterialError(f"Private scalar is out of range: {exc}") from exc

  if public_point is not None:
    expected = load_public_key(public_point)
    if public_key_bytes(private_key.public_key()) != public_key_bytes(expected):
      raise InvalidKeyMaterialError("Public point does not belong to the private scalar.")

  return private_key


def aes128gcm_encrypt(*, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
  """AES-128-GCM encryption; the 16-byte tag is appended to the ciphertext."""
  if len(key) != 16:
    raise InvalidKeyMaterialError(f"AES-128 requires a 16-byte key, got {len(key)} bytes.")
  return AESGCM(key).encrypt(nonce, plaintext, None)


def ecdsa_p256_sha256_sign(private_key: ec.EllipticCurvePrivateKey, data: bytes) -> bytes:
  """ES256 signature in the raw 64-byte r || s form JWS expects."""
  # cryptography emits DER; JWS needs fixed-width big-endian coordinates.
  der_signature = private_key.sign(data, ec.ECDSA(hashes.SHA256()))
  r, s = decode_dss_signature(der_signature)
  return r.to_bytes(COORDINATE_LENGTH, "big") + s.to_bytes(COORDINATE_LENGTH, "big")
