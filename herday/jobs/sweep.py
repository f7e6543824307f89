"""Periodic push sweep entry point.

Run one tick from cron (or any external scheduler)::

    python -m herday.jobs.sweep

Hosts without an external clock can pass ``--interval SECONDS`` to repeat ticks
until interrupted. Each tick is independent; state lives only in the store.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

import httpx

from herday.config import Settings, get_settings
from herday.core.database import dispose_engine, init_models
from herday.core.logging import initialize_logging
from herday.notifications.dispatcher import DispatchSummary
from herday.notifications.factory import build_dispatcher

logger = logging.getLogger("herday.jobs.sweep")


async def run_sweep(settings: Settings, *, now: int | None = None) -> DispatchSummary:
  """Run a single dispatcher tick with a fresh HTTP client."""
  async with httpx.AsyncClient(timeout=settings.push_timeout_seconds) as client:
    dispatcher = build_dispatcher(settings, client=client)
    return await dispatcher.run_once(now=now)


async def _run(settings: Settings, *, interval: float | None) -> None:
  if settings.auto_create_tables:
    await init_models()

  try:
    while True:
      try:
        await run_sweep(settings)
      except Exception:  # noqa: BLE001
        if interval is None:
          raise
        # Keep looping; the next tick retries the whole due-set.
        logger.error("Sweep failed; retrying in %.0fs", interval, exc_info=True)

      if interval is None:
        return
      await asyncio.sleep(interval)
  finally:
    await dispose_engine()


def main(argv: list[str] | None = None) -> int:
  parser = argparse.ArgumentParser(description="Send due push notifications and remove them from the schedule.")
  parser.add_argument("--interval", type=float, default=None, help="Repeat the sweep every N seconds instead of running once.")
  args = parser.parse_args(argv)

  if args.interval is not None and args.interval <= 0:
    parser.error("--interval must be a positive number of seconds")

  settings = get_settings()
  initialize_logging(settings)

  try:
    asyncio.run(_run(settings, interval=args.interval))
  except KeyboardInterrupt:
    logger.info("Sweep loop interrupted")
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
