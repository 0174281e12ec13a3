from datetime import datetime
from typing import Iterable

from dates import parse_timestamp
from models import DeduplicationResult, Task, TaskPartition


def partition_tasks(tasks: Iterable[Task], today: str) -> TaskPartition:
    """
    Split tasks into the groups the scheduler treats differently.

    - completed: done, kept as-is (regardless of recurrence)
    - recurring: incomplete recurring instances, already on their own day
    - pinned: pulled to today by the user, kept for today only
    - to_schedule: everything else, gets a new start_date
    """
    partition = TaskPartition()

    for task in tasks:
        if task.completed:
            partition.completed.append(task)
        elif task.is_recurring:
            partition.recurring.append(task)
        elif task.pinned_date == today:
            partition.pinned.append(task)
        else:
            partition.to_schedule.append(task)

    return partition


def _created(task: Task) -> datetime:
    return parse_timestamp(task.created_at)


def deduplicate_recurring_tasks(recurring_tasks: Iterable[Task]) -> DeduplicationResult:
    """
    Collapse instances of the same series that landed on the same day.
    The first-created instance wins.
    """
    kept: dict[str, Task] = {}
    duplicates: list[str] = []

    for task in recurring_tasks:
        # Without a date or series there is nothing to collide with
        if not task.start_date or not task.recurring_series_id:
            kept[f"id:{task.id}"] = task
            continue

        key = f"{task.start_date}:{task.recurring_series_id}"
        existing = kept.get(key)
        if existing is None:
            kept[key] = task
        elif _created(task) < _created(existing):
            duplicates.append(f"{task.title} on {task.start_date} (kept older instance)")
            kept[key] = task
        else:
            duplicates.append(f"{task.title} on {task.start_date} (removed duplicate)")

    return DeduplicationResult(tasks=list(kept.values()), duplicates_removed=duplicates)
