"""Common Celery app for Beat and Worker."""

import importlib
import pkgutil
from typing import List

from celery import Celery
from celery.schedules import crontab
from scholarship import settings

celery_app = Celery(
    "scholarship",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.beat_schedule = {
    "refresh-batch-statuses-daily": {
        "task": "scholarship.tasks.batch_status.refresh_batch_statuses",
        # Shortly after local midnight, when batch windows open and close
        "schedule": crontab(minute=5, hour=0),
        "options": {"queue": "celery"},
    },
}

celery_app.conf.timezone = settings.TZ


def _import_all_task_modules() -> List[str]:
    """Import all modules under `scholarship.tasks.*` so Celery registers task decorators."""
    imported: List[str] = []
    try:
        import scholarship.tasks as tasks_pkg
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: cannot import task package 'scholarship.tasks'"
        ) from e

    try:
        for module_info in pkgutil.walk_packages(
            tasks_pkg.__path__,
            prefix=f"{tasks_pkg.__name__}.",
        ):
            name = module_info.name
            importlib.import_module(name)
            imported.append(name)
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: error while importing task modules under 'scholarship.tasks.*'"
        ) from e
    return imported


# Auto-import tasks for both worker and beat processes.
_import_all_task_modules()
