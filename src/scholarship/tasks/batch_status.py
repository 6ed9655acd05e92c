"""Celery task keeping stored batch statuses in line with the calendar."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from scholarship.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="scholarship.tasks.batch_status.refresh_batch_statuses")
def refresh_batch_statuses_task(date_str: Optional[str] = None) -> Dict[str, Any]:
    from datetime import date as _date
    from scholarship.services.batch_status import refresh_batch_statuses

    on = _date.fromisoformat(date_str) if date_str else None
    changed = refresh_batch_statuses(on=on)
    logger.info(f"refresh_batch_statuses_task: {changed} batch(es) updated")
    return {"status": "completed", "domain": "batch_status", "date": date_str, "updated": changed}
