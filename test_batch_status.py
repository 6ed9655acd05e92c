from datetime import date, datetime

import pytest

from scholarship.db_batches import BatchStatus, create_batch, get_batch_by_id
from scholarship.services.batch_status import as_date, classify_batch_status, refresh_batch_statuses


START = date(2026, 3, 1)
END = date(2026, 3, 31)


@pytest.mark.parametrize(
    "on, expected",
    [
        (date(2026, 2, 28), BatchStatus.NOT_STARTED),
        (date(2026, 3, 1), BatchStatus.IN_PROGRESS),
        (date(2026, 3, 15), BatchStatus.IN_PROGRESS),
        (date(2026, 3, 31), BatchStatus.IN_PROGRESS),
        (date(2026, 4, 1), BatchStatus.ENDED),
    ],
)
def test_classify_batch_status_bounds_are_inclusive(on, expected):
    assert classify_batch_status(on, START, END) == expected


def test_classify_batch_status_ignores_time_of_day():
    late_on_last_day = datetime(2026, 3, 31, 23, 59, 59)
    assert classify_batch_status(late_on_last_day, START, END) == BatchStatus.IN_PROGRESS
    assert classify_batch_status("2026-03-31T23:59:59", "2026-03-01", "2026-03-31") == BatchStatus.IN_PROGRESS


def test_single_day_window():
    day = date(2026, 5, 4)
    assert classify_batch_status(day, day, day) == BatchStatus.IN_PROGRESS
    assert classify_batch_status(date(2026, 5, 5), day, day) == BatchStatus.ENDED


def test_as_date_rejects_other_types():
    with pytest.raises(TypeError):
        as_date(20260301)


def test_refresh_batch_statuses_updates_only_changed_batches():
    upcoming = create_batch("Upcoming", "merit", date(2026, 4, 1), date(2026, 4, 30), BatchStatus.NOT_STARTED)
    current = create_batch("Current", "merit", START, END, BatchStatus.NOT_STARTED)
    stale = create_batch("Stale", "merit", date(2026, 1, 1), date(2026, 1, 31), BatchStatus.IN_PROGRESS)

    changed = refresh_batch_statuses(on=date(2026, 3, 15))

    assert changed == 2
    assert get_batch_by_id(upcoming["id"])["status"] == BatchStatus.NOT_STARTED
    assert get_batch_by_id(current["id"])["status"] == BatchStatus.IN_PROGRESS
    assert get_batch_by_id(stale["id"])["status"] == BatchStatus.ENDED

    # Second run on the same day has nothing to do
    assert refresh_batch_statuses(on=date(2026, 3, 15)) == 0


def test_refresh_batch_statuses_task_accepts_date_string():
    from scholarship.tasks.batch_status import refresh_batch_statuses_task

    batch = create_batch("Current", "merit", START, END, BatchStatus.NOT_STARTED)

    result = refresh_batch_statuses_task.run("2026-03-02")

    assert result["status"] == "completed"
    assert result["updated"] == 1
    assert get_batch_by_id(batch["id"])["status"] == BatchStatus.IN_PROGRESS
