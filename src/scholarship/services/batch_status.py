"""Batch window status derived from the calendar date.

A batch's stored `status` is only a cache of classify_batch_status() for
today's date. It is refreshed before batch listings, on startup and by a
daily Celery task.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from scholarship import settings
from scholarship.db_batches import BatchStatus, list_batches, set_batch_status

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def as_date(value: DateLike) -> date:
    """Truncate to day granularity. Accepts date, datetime or an ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Expected a date, datetime or ISO date string, got {type(value).__name__}")


def today() -> date:
    """Current calendar date in the configured time zone."""
    return datetime.now(ZoneInfo(settings.TZ)).date()


def classify_batch_status(on: DateLike, start_date: DateLike, end_date: DateLike) -> str:
    """Classify a batch window relative to the date `on`.

    not_started iff on < start, in_progress iff start <= on <= end,
    ended iff on > end. Both bounds are inclusive days.
    """
    current = as_date(on)
    start = as_date(start_date)
    end = as_date(end_date)

    if current < start:
        return BatchStatus.NOT_STARTED
    if current <= end:
        return BatchStatus.IN_PROGRESS
    return BatchStatus.ENDED


def refresh_batch_statuses(on: Optional[date] = None) -> int:
    """Recompute the status of every batch and store the ones that changed.

    Returns:
        Number of batches whose status was updated
    """
    current = on or today()
    logger.debug(f"refresh_batch_statuses: checking batches against {current.isoformat()}")

    changed = 0
    for batch in list_batches():
        new_status = classify_batch_status(current, batch["start_date"], batch["end_date"])
        if new_status != batch["status"]:
            logger.info(
                f"refresh_batch_statuses: batch id={batch['id']} "
                f"{batch['status']} -> {new_status}"
            )
            set_batch_status(batch["id"], new_status)
            changed += 1

    return changed
