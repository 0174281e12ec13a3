import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from dates import add_days, day_of_week, format_day, parse_day
from models import Task


def _end_reached(task: Task, count: int) -> bool:
    return (
        task.recurring_end_type == "after"
        and bool(task.recurring_end_count)
        and count >= task.recurring_end_count
    )


def calculate_next_due_date(task: Task) -> str:
    """
    Next due date for a recurring task, from its current due date
    (or the day it was created when it has none).
    """
    current = task.due_date or task.created_at[:10]

    if task.recurring_interval == "weekly":
        if not task.recurring_days:
            return add_days(current, 7)
        current_day = day_of_week(current)
        days = sorted(set(task.recurring_days))
        later = [d for d in days if d > current_day]
        if later:
            return add_days(current, later[0] - current_day)
        # Wrap to the earliest day of next week
        return add_days(current, 7 - current_day + days[0])

    if task.recurring_interval == "monthly":
        # relativedelta clamps to the last day of shorter months; a stored
        # day of month keeps a clamped date from sticking
        step = relativedelta(months=1)
        if task.recurring_days and len(task.recurring_days) == 1 and task.recurring_days[0] >= 1:
            step = relativedelta(months=1, day=task.recurring_days[0])
        return format_day(parse_day(current) + step)

    return add_days(current, 1)


def next_recurring_instance(completed_task: Task, now: Optional[datetime] = None) -> Optional[Task]:
    """
    Build the next occurrence of a completed recurring task.
    Returns None when the task doesn't recur or its series is used up.
    """
    if not completed_task.is_recurring:
        return None
    if _end_reached(completed_task, completed_task.recurring_current_count):
        return None

    due_date = calculate_next_due_date(completed_task)
    created_at = (now or datetime.now()).isoformat()

    # Recurring instances stay pinned to their due date
    return completed_task.model_copy(update={
        "id": str(uuid.uuid4()),
        "recurring_series_id": completed_task.recurring_series_id or completed_task.id,
        "due_date": due_date,
        "start_date": due_date,
        "pinned_date": None,
        "completed": False,
        "completed_at": None,
        "recurring_current_count": completed_task.recurring_current_count + 1,
        "created_at": created_at,
    })


def initial_recurring_instances(
    base_task: Task,
    weeks_ahead: int = 4,
    today: Optional[str] = None,
) -> list[Task]:
    """
    Expand a new weekly recurring task into its first weeks of instances,
    one per matching weekday. Other patterns produce only the base task.
    """
    if (
        not base_task.is_recurring
        or base_task.recurring_interval != "weekly"
        or not base_task.recurring_days
    ):
        return [base_task]

    start = parse_day(base_task.due_date or today or format_day(datetime.now()))
    end = start + timedelta(days=7 * weeks_ahead)
    series_id = base_task.recurring_series_id or str(uuid.uuid4())
    recurring_days = set(base_task.recurring_days)

    instances = []
    count = 1
    current = start
    while current <= end:
        day = format_day(current)
        if day_of_week(day) in recurring_days:
            if base_task.recurring_end_type == "after" and base_task.recurring_end_count and count > base_task.recurring_end_count:
                break
            instances.append(base_task.model_copy(update={
                "id": str(uuid.uuid4()),
                "recurring_series_id": series_id,
                "due_date": day,
                "start_date": day,
                "recurring_current_count": count,
            }))
            count += 1
        current += timedelta(days=1)

    return instances


def has_recurring_instance_on_date(tasks: Iterable[Task], series_id: str, date: str) -> bool:
    """True if an open instance of the series already sits on date."""
    return any(
        t.recurring_series_id == series_id and t.start_date == date and not t.completed
        for t in tasks
    )
