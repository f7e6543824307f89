import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from types import TracebackType

from herday.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGING_INITIALIZED = False


class TruncatedFormatter(logging.Formatter):
  """Formatter that truncates the stack trace to the last few lines."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    lines = traceback.format_exception(*ei)
    # Keep header + last 5 lines of traceback
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _build_handlers(settings: Settings) -> list[logging.Handler]:
  stream = logging.StreamHandler(sys.stdout)
  stream.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  handlers: list[logging.Handler] = [stream]

  if settings.log_dir:
    log_dir = Path(settings.log_dir)
    try:
      log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
      raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

    file_handler = logging.handlers.RotatingFileHandler(log_dir / "herday_push.log", encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
    file_handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
    handlers.append(file_handler)

  return handlers


def setup_logging(settings: Settings) -> None:
  """Route root, uvicorn and fastapi loggers through the same handlers."""
  handlers = _build_handlers(settings)
  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = list(handlers)
    log.propagate = False

  logging.basicConfig(level=settings.log_level, handlers=handlers, force=True)
  # SQL echo is controlled by HERDAY_DEBUG, not by the root level.
  logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.debug else logging.WARNING)
  logging.getLogger("httpx").setLevel(logging.WARNING)


def initialize_logging(settings: Settings) -> None:
  """Initialize logging once per process."""
  global _LOGGING_INITIALIZED
  if _LOGGING_INITIALIZED:
    return
  setup_logging(settings)
  _LOGGING_INITIALIZED = True
  logging.getLogger("herday.core.logging").info("Logging initialized level=%s log_dir=%s", settings.log_level, settings.log_dir or "<stdout only>")
