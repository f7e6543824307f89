"""Test configuration for importing the application package."""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from herday.webpush.vapid import generate_vapid_key_pair  # noqa: E402

# herday.main reads settings at import time, so the environment must be ready first.
_TEST_VAPID_KEYS = generate_vapid_key_pair("mailto:tests@herday.example")
os.environ["HERDAY_VAPID_PUBLIC_KEY"] = _TEST_VAPID_KEYS.public_key
os.environ["HERDAY_VAPID_PRIVATE_KEY"] = _TEST_VAPID_KEYS.private_key
os.environ["HERDAY_VAPID_SUBJECT"] = _TEST_VAPID_KEYS.subject
os.environ.setdefault("HERDAY_ENV", "test")
os.environ.pop("HERDAY_LOG_DIR", None)

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from cryptography.hazmat.primitives.asymmetric import ec  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import herday.core.database as database  # noqa: E402
from herday.config import get_database_settings, get_settings  # noqa: E402
from herday.core.database import Base  # noqa: E402
from herday.notifications.contracts import PushSubscription  # noqa: E402
from herday.webpush.encoding import b64url_encode  # noqa: E402
from herday.webpush.primitives import public_key_bytes  # noqa: E402


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def vapid_keys():
  return _TEST_VAPID_KEYS


@pytest.fixture(autouse=True)
def _isolated_database(tmp_path, monkeypatch):
  """Point every test at its own SQLite file and forget any engine built earlier."""
  monkeypatch.setenv("HERDAY_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'push.db'}")
  get_database_settings.cache_clear()
  get_settings.cache_clear()
  database.engine = None
  database.SessionLocal = None
  # Logging setup replaces root handlers, which would hide records from caplog.
  with patch("herday.core.logging._LOGGING_INITIALIZED", True):
    yield
  database.engine = None
  database.SessionLocal = None
  get_database_settings.cache_clear()
  get_settings.cache_clear()


@pytest.fixture
async def session_factory(tmp_path):
  engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
  import herday.schema.push_schedules  # noqa: F401

  async with engine.begin() as connection:
    await connection.run_sync(Base.metadata.create_all)

  yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  await engine.dispose()


class Subscriber:
  """A browser-side subscription with the private half kept for decryption."""

  def __init__(self, endpoint: str) -> None:
    self.private_key = ec.generate_private_key(ec.SECP256R1())
    self.auth_secret = os.urandom(16)
    self.endpoint = endpoint

  @property
  def p256dh(self) -> str:
    return b64url_encode(public_key_bytes(self.private_key.public_key()))

  @property
  def auth(self) -> str:
    return b64url_encode(self.auth_secret)

  def subscription(self) -> PushSubscription:
    return PushSubscription(endpoint=self.endpoint, p256dh=self.p256dh, auth=self.auth)

  def as_json(self) -> dict:
    return {"endpoint": self.endpoint, "expirationTime": None, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


@pytest.fixture
def subscriber():
  return Subscriber("https://fcm.googleapis.com/fcm/send/abc123")


@pytest.fixture
def make_subscriber():
  return Subscriber
