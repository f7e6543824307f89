"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./herday_push.db"
DEFAULT_TITLE = "HerDay Reminder"
DEFAULT_BODY = "Time to check your cycle!"
PUSH_URGENCIES = ("very-low", "low", "normal", "high")


def env_file_path() -> Path:
  """HERDAY_ENV_FILE if set, otherwise `.env` next to the `herday` package."""
  override = os.getenv("HERDAY_ENV_FILE", "").strip()
  if override:
    return Path(override).expanduser()
  return Path(__file__).resolve().parent.parent / ".env"


def load_env_file(path: Path) -> list[str]:
  """Apply `KEY=value` lines from a dotenv file; variables already set in the process win.

  Returns the keys that were applied so callers can report where settings came from.
  """
  if not path.is_file():
    return []

  applied: list[str] = []
  for line_number, raw_line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue

    key, sep, value = line.removeprefix("export ").partition("=")
    key = key.strip()
    if not sep or not key:
      raise ValueError(f"{path}:{line_number}: expected KEY=value")

    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
      value = value[1:-1]

    if key not in os.environ:
      os.environ[key] = value
      applied.append(key)

  return applied


load_env_file(env_file_path())


@dataclass(frozen=True)
class Settings:
  """Typed settings for the HerDay push service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  database_url: str
  auto_create_tables: bool
  log_level: str
  log_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  vapid_public_key: str
  vapid_private_key: str
  vapid_subject: str
  push_timeout_seconds: float
  push_ttl_seconds: int
  push_urgency: str
  push_click_url: str
  default_title: str
  default_body: str


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  database_url: str


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  # An empty list means every origin is accepted.
  if not raw:
    return ()

  return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def _parse_bool(raw: str | None, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def normalize_database_url(raw: str | None) -> str:
  """Map plain Postgres DSNs onto the asyncpg driver; keep anything else as given."""
  if not raw:
    return DEFAULT_DATABASE_URL

  url = raw.strip()
  if url.startswith("postgres://"):
    return "postgresql+asyncpg://" + url[len("postgres://") :]

  if url.startswith("postgresql://"):
    return "postgresql+asyncpg://" + url[len("postgresql://") :]

  return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("HERDAY_ENV", "development").strip().lower()
  debug = _parse_bool(os.getenv("HERDAY_DEBUG"))

  log_level = (os.getenv("HERDAY_LOG_LEVEL") or ("DEBUG" if debug else "INFO")).strip().upper()
  if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
    raise ValueError("HERDAY_LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL.")

  log_max_bytes = int(os.getenv("HERDAY_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("HERDAY_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("HERDAY_LOG_BACKUP_COUNT", "5"))
  if log_backup_count < 0:
    raise ValueError("HERDAY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  vapid_public_key = _optional_str(os.getenv("HERDAY_VAPID_PUBLIC_KEY"))
  vapid_private_key = _optional_str(os.getenv("HERDAY_VAPID_PRIVATE_KEY"))
  vapid_subject = _optional_str(os.getenv("HERDAY_VAPID_SUBJECT"))

  if not vapid_public_key:
    raise ValueError("HERDAY_VAPID_PUBLIC_KEY must be set.")

  if not vapid_private_key:
    raise ValueError("HERDAY_VAPID_PRIVATE_KEY must be set.")

  if not vapid_subject:
    raise ValueError("HERDAY_VAPID_SUBJECT must be set.")

  if not (vapid_subject.startswith("mailto:") or vapid_subject.startswith("https://")):
    raise ValueError("HERDAY_VAPID_SUBJECT must start with 'mailto:' or 'https://'.")

  push_timeout_seconds = float(os.getenv("HERDAY_PUSH_TIMEOUT_SECONDS", "10"))
  if push_timeout_seconds <= 0:
    raise ValueError("HERDAY_PUSH_TIMEOUT_SECONDS must be a positive number.")

  push_ttl_seconds = int(os.getenv("HERDAY_PUSH_TTL_SECONDS", "86400"))
  if push_ttl_seconds < 0:
    raise ValueError("HERDAY_PUSH_TTL_SECONDS must be zero or a positive integer.")

  push_urgency = (os.getenv("HERDAY_PUSH_URGENCY") or "normal").strip().lower()
  if push_urgency not in PUSH_URGENCIES:
    raise ValueError(f"HERDAY_PUSH_URGENCY must be one of {', '.join(PUSH_URGENCIES)}.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("HERDAY_ALLOWED_ORIGINS")),
    database_url=normalize_database_url(os.getenv("HERDAY_DATABASE_URL")),
    auto_create_tables=_parse_bool(os.getenv("HERDAY_AUTO_CREATE_TABLES"), default=True),
    log_level=log_level,
    log_dir=_optional_str(os.getenv("HERDAY_LOG_DIR")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    vapid_public_key=vapid_public_key,
    vapid_private_key=vapid_private_key,
    vapid_subject=vapid_subject,
    push_timeout_seconds=push_timeout_seconds,
    push_ttl_seconds=push_ttl_seconds,
    push_urgency=push_urgency,
    push_click_url=(os.getenv("HERDAY_PUSH_CLICK_URL") or "/").strip(),
    default_title=_optional_str(os.getenv("HERDAY_DEFAULT_TITLE")) or DEFAULT_TITLE,
    default_body=_optional_str(os.getenv("HERDAY_DEFAULT_BODY")) or DEFAULT_BODY,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring VAPID or web-runtime configuration."""
  # Migrations and offline scripts only need the DSN.
  return DatabaseSettings(debug=_parse_bool(os.getenv("HERDAY_DEBUG")), database_url=normalize_database_url(os.getenv("HERDAY_DATABASE_URL")))
