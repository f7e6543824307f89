"""One-shot delivery sweep over due push schedules."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from herday.notifications.contracts import DeliveryOutcome, PushPayload, PushSender, ScheduleEntry
from herday.notifications.schedule_repo import ScheduleRepository
from herday.utils.ids import short_id
from herday.webpush.errors import WebPushCryptoError

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
  """Counters for a single sweep."""

  due: int = 0
  delivered: int = 0
  rejected: int = 0
  unreachable: int = 0
  failed: int = 0
  removed: int = 0


class PushDispatcher:
  """Sends every due schedule once and deletes it afterwards, whatever the outcome.

  Ticks are driven by an external clock and keep no state between runs. A crash
  between send and delete can cause a duplicate send on the next tick, never a
  row that is silently skipped.
  """

  def __init__(self, *, schedule_repo: ScheduleRepository, push_sender: PushSender, clock: Callable[[], float] = time.time, click_url: str = "/") -> None:
    self._schedule_repo = schedule_repo
    self._push_sender = push_sender
    self._clock = clock
    self._click_url = click_url

  async def run_once(self, now: int | None = None) -> DispatchSummary:
    """Process the due-set snapshot taken at `now` sequentially."""
    cutoff = int(self._clock()) if now is None else int(now)
    summary = DispatchSummary()

    due_rows = await self._schedule_repo.due_before(cutoff)
    summary.due = len(due_rows)
    if not due_rows:
      return summary

    logger.info("Processing %d due notification(s) cutoff=%s", len(due_rows), cutoff)
    for row in due_rows:
      await self._process_row(row, summary)

    logger.info(
      "Sweep finished due=%d delivered=%d rejected=%d unreachable=%d failed=%d removed=%d",
      summary.due,
      summary.delivered,
      summary.rejected,
      summary.unreachable,
      summary.failed,
      summary.removed,
    )
    return summary

  async def _process_row(self, row: ScheduleEntry, summary: DispatchSummary) -> None:
    payload = PushPayload(title=row.title, body=row.body, url=self._click_url)

    # One failing row must never abort the rest of the sweep.
    try:
      result = await self._push_sender.send(row.subscription(), payload)
    except WebPushCryptoError as exc:
      summary.failed += 1
      logger.error("Push to %s failed (crypto/config): %s", short_id(row.id), exc)
    except Exception as exc:  # noqa: BLE001
      summary.failed += 1
      logger.error("Push to %s failed: %s", short_id(row.id), exc, exc_info=True)
    else:
      if result.outcome is DeliveryOutcome.DELIVERED:
        summary.delivered += 1
        logger.info("Push to %s: %s %s", short_id(row.id), result.status_code, result.reason)
      elif result.outcome is DeliveryOutcome.REJECTED:
        summary.rejected += 1
        logger.warning("Push to %s rejected: %s %s", short_id(row.id), result.status_code, result.reason)
      else:
        summary.unreachable += 1
        logger.warning("Push to %s unreachable: %s", short_id(row.id), result.reason)

    # One-shot: remove after the attempt regardless of the outcome.
    try:
      if await self._schedule_repo.remove_by_id(row.id):
        summary.removed += 1
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed removing schedule %s after attempt: %s", short_id(row.id), exc, exc_info=True)
