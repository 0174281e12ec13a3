import logging
from typing import Optional

from capacity import CapacityLedger
from dates import add_days, days_between
from models import SchedulingOptions, ScoredTask, SlotResult, Task

logger = logging.getLogger(__name__)


def _search_horizon(task: Task, options: SchedulingOptions) -> int:
    """Number of day offsets the first pass may try, counting today as 0."""
    look_ahead = options.look_ahead_days
    if not task.due_date:
        return look_ahead
    days_until_due = days_between(options.today, task.due_date)
    if days_until_due < 0:
        # Overdue: the whole window is fair game
        return look_ahead
    # +1 so the due date itself is included
    return min(days_until_due + 1, look_ahead)


def find_slot_for_task(task: Task, ledger: CapacityLedger, options: SchedulingOptions) -> SlotResult:
    """
    First day from today that satisfies all three capacity limits.

    Days up to the due date are tried first. If they are all full and the
    window reaches past the due date, later days are tried too and the
    result carries a warning. SlotResult() with no date means the caller
    has to fall back.
    """
    today = options.today
    look_ahead = options.look_ahead_days
    max_offset = _search_horizon(task, options)

    for offset in range(max_offset):
        date = add_days(today, offset)
        if ledger.can_fit(date, task).can_fit:
            return SlotResult(date=date)

    if max_offset < look_ahead:
        for offset in range(max_offset, look_ahead):
            date = add_days(today, offset)
            if ledger.can_fit(date, task).can_fit:
                return SlotResult(
                    date=date,
                    warning=f'Task "{task.title}" scheduled after due date on {date} to maintain daily limits.',
                )

    return SlotResult()


def handle_unscheduled_task(task: Task, ledger: CapacityLedger, options: SchedulingOptions) -> SlotResult:
    """
    Placement for a task that fits nowhere within the limits.

    Tasks with a deadline still get a day: overdue ones go to today, others
    to their due date or the first day after it with room for one more
    task. Hour limits may be exceeded here; every override comes back with
    a warning.
    """
    today = options.today
    look_ahead = options.look_ahead_days

    if not task.due_date:
        return SlotResult(
            warning=f'Task "{task.title}" could not be scheduled. Please adjust capacity limits or task duration.',
        )

    due_date = task.due_date
    due_offset = days_between(today, due_date)

    if due_offset < 0:
        max_tasks = ledger.max_tasks_for(today)
        if ledger.task_count(today) < max_tasks:
            warning = f'Task "{task.title}" is overdue and scheduled for today, but may exceed capacity limits.'
        else:
            warning = f'Task "{task.title}" is overdue and scheduled for today, but exceeds {max_tasks}-task daily limit.'
        return SlotResult(date=today, warning=warning)

    if due_offset < look_ahead:
        has_room = ledger.task_count(due_date) < ledger.max_tasks_for(due_date)
        if has_room or not options.fallback_policy.enforce_task_cap:
            return SlotResult(
                date=due_date,
                warning=f'Task "{task.title}" scheduled on due date ({due_date}) but may exceed capacity limits.',
            )

    # Due date is full or past the window: only the task count matters now
    for offset in range(due_offset + 1, look_ahead):
        date = add_days(today, offset)
        if ledger.task_count(date) < ledger.max_tasks_for(date):
            return SlotResult(
                date=date,
                warning=f'Task "{task.title}" scheduled on {date} (due date {due_date} was full).',
            )

    return SlotResult(
        warning=(
            f'Task "{task.title}" due on {due_date} could not be scheduled. '
            "Please adjust capacity limits or reschedule some tasks."
        ),
    )


def schedule_tasks_greedy(
    tasks: list[ScoredTask],
    ledger: CapacityLedger,
    options: SchedulingOptions,
    log: Optional[logging.Logger] = None,
) -> tuple[list[Task], list[str]]:
    """
    Place tasks in the given order (highest priority first), never
    revisiting a decision. Capacity is reserved before the next task is
    looked at. Returns the placed tasks (start_date None when nothing
    worked) and the warnings collected along the way.
    """
    log = log or logger
    scheduled: list[Task] = []
    warnings: list[str] = []

    for task in tasks:
        result = find_slot_for_task(task, ledger, options)
        if result.date is None:
            result = handle_unscheduled_task(task, ledger, options)
            log.info("Fallback for %r: %s", task.title, result.warning)

        placed = task.as_task().model_copy(update={"start_date": result.date})
        if result.date is not None:
            ledger.reserve(result.date, placed)
            log.debug(
                "Placed %r (score %.1f): %s -> %s, day now %s",
                task.title, task.priority_score, task.start_date, result.date,
                ledger.debug_info(result.date),
            )
        scheduled.append(placed)

        if result.warning:
            warnings.append(result.warning)

    return scheduled, warnings
