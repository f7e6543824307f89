"""VAPID (RFC 8292) authentication for requests to push services."""

from __future__ import annotations

import json
import time
import urllib.parse
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import ec

from herday.webpush.encoding import b64url_decode, b64url_encode
from herday.webpush.errors import InvalidKeyMaterialError, VapidKeyError
from herday.webpush.primitives import ecdsa_p256_sha256_sign, generate_ecdh_key_pair, load_private_key, private_key_bytes, public_key_bytes

VAPID_TOKEN_LIFETIME_SECONDS = 12 * 60 * 60
JWT_HEADER = {"typ": "JWT", "alg": "ES256"}
_DEFAULT_PORTS = {"https": 443, "http": 80}


@dataclass(frozen=True)
class VapidKeyPair:
  """Long-lived server identity used to sign every outgoing push request."""

  public_key: str
  private_key: str
  subject: str

  def signing_key(self) -> ec.EllipticCurvePrivateKey:
    """Rebuild the ECDSA key from the raw base64url scalar and point."""
    try:
      return load_private_key(b64url_decode(self.private_key), b64url_decode(self.public_key))
    except InvalidKeyMaterialError as exc:
      raise VapidKeyError(f"VAPID key pair is malformed: {exc}") from exc


@dataclass(frozen=True)
class VapidHeaders:
  """Header values proving server identity to a single push service origin."""

  authorization: str
  crypto_key: str


def audience_for_endpoint(endpoint: str) -> str:
  """Return the origin (scheme://host[:port]) a VAPID token must be scoped to."""
  parsed = urllib.parse.urlsplit(endpoint)
  if not parsed.scheme or not parsed.hostname:
    raise ValueError("Push endpoint must be an absolute URL.")

  scheme = parsed.scheme.lower()
  host = parsed.hostname
  if ":" in host:
    host = f"[{host}]"
  # Default ports are not part of the origin.
  port = f":{parsed.port}" if parsed.port and _DEFAULT_PORTS.get(scheme) != parsed.port else ""
  return f"{scheme}://{host}{port}"


def _encode_segment(value: dict) -> str:
  return b64url_encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def create_vapid_jwt(audience: str, keys: VapidKeyPair, *, now: int | None = None) -> str:
  """Build and sign the ES256 JWT carried in the `vapid t=` parameter."""
  issued_at = int(time.time()) if now is None else int(now)
  claims = {"aud": audience, "exp": issued_at + VAPID_TOKEN_LIFETIME_SECONDS, "sub": keys.subject}

  signing_input = f"{_encode_segment(JWT_HEADER)}.{_encode_segment(claims)}"
  signature = ecdsa_p256_sha256_sign(keys.signing_key(), signing_input.encode("utf-8"))
  return f"{signing_input}.{b64url_encode(signature)}"


def build_vapid_headers(audience: str, keys: VapidKeyPair, *, now: int | None = None) -> VapidHeaders:
  """Return the Authorization and Crypto-Key values for one push request."""
  token = create_vapid_jwt(audience, keys, now=now)
  return VapidHeaders(authorization=f"vapid t={token},k={keys.public_key}", crypto_key=f"p256ecdsa={keys.public_key}")


def generate_vapid_key_pair(subject: str) -> VapidKeyPair:
  """Create a fresh key pair encoded the way browsers expect `applicationServerKey`."""
  private_key = generate_ecdh_key_pair()
  return VapidKeyPair(public_key=b64url_encode(public_key_bytes(private_key.public_key())), private_key=b64url_encode(private_key_bytes(private_key)), subject=subject)
