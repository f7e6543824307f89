import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from herday.core.database import dispose_engine, init_models
from herday.core.logging import initialize_logging
from herday.notifications.factory import vapid_keys_from_settings
from herday.webpush.errors import VapidKeyError


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, refuse to start on bad VAPID keys, and prepare the schedule table."""
  from herday.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("herday.core.lifespan")
  initialize_logging(settings)

  # A malformed key pair would fail every send identically; fail fast instead.
  try:
    vapid_keys_from_settings(settings).signing_key()
  except VapidKeyError:
    logger.error("VAPID key pair is invalid; refusing to start the service.", exc_info=True)
    raise

  if settings.auto_create_tables:
    await init_models()
    logger.info("Schedule table ensured")

  logger.info("Startup complete environment=%s", settings.environment)
  try:
    yield
  finally:
    await dispose_engine()
