"""
One scheduling pass over a user's full task list.

partition -> dedupe recurring -> seed ledger -> score -> place -> diff

The pass keeps no state between calls. Callers must not run two passes
for the same user at the same time; the ledger has no locking.
"""
import logging
from typing import Iterable, Mapping, Optional, Union

from capacity import CapacityLedger
from models import (
    DayLimits,
    FallbackPolicy,
    RescheduledTask,
    ScheduleResult,
    SchedulingOptions,
    ScoringWeights,
    Task,
    TaskLimits,
)
from partition import deduplicate_recurring_tasks, partition_tasks
from prioritization import DEFAULT_WEIGHTS, add_priority_scores, sort_by_priority
from strategy import schedule_tasks_greedy

logger = logging.getLogger(__name__)


def assign_start_dates(
    tasks: Iterable[Task],
    category_limits: Mapping[str, Union[DayLimits, dict]],
    daily_max_hours: Union[DayLimits, dict],
    daily_max_tasks: Union[TaskLimits, dict],
    look_ahead_days: int = 90,
    *,
    today: str,
    fallback_policy: Optional[FallbackPolicy] = None,
    weights: Optional[ScoringWeights] = None,
    log: Optional[logging.Logger] = None,
) -> ScheduleResult:
    """
    Give every flexible task a start_date.

    Completed, recurring and pinned-for-today tasks keep their dates and
    only consume capacity. The rest are placed greedily by priority.

    Args:
        tasks: Full task snapshot for one user
        category_limits / daily_max_hours / daily_max_tasks: capacity config
        look_ahead_days: How far forward a task may be placed
        today: Today's calendar day (YYYY-MM-DD) in the user's timezone
        fallback_policy: How hard the task-count cap is when a deadline forces placement
        weights: Scoring constants
        log: Where to send progress records (defaults to this module's logger)

    Returns:
        ScheduleResult with the full task list, the tasks whose start_date
        changed, warnings for the UI, and any recurring duplicates dropped.
    """
    log = log or logger
    tasks = list(tasks)
    options = SchedulingOptions(
        today=today,
        look_ahead_days=look_ahead_days,
        category_limits=dict(category_limits),
        daily_max_hours=daily_max_hours,
        daily_max_tasks=daily_max_tasks,
        fallback_policy=fallback_policy or FallbackPolicy(),
    )

    partition = partition_tasks(tasks, today)
    deduped = deduplicate_recurring_tasks(partition.recurring)
    for duplicate in deduped.duplicates_removed:
        log.info("Recurring duplicate: %s", duplicate)

    fixed = partition.completed + deduped.tasks + partition.pinned
    ledger = CapacityLedger(options.category_limits, options.daily_max_hours, options.daily_max_tasks)
    # Completed tasks count too: they used up a slot on the day they were done
    ledger.seed(fixed)

    ranked = sort_by_priority(add_priority_scores(partition.to_schedule, today, weights or DEFAULT_WEIGHTS))
    placed, warnings = schedule_tasks_greedy(ranked, ledger, options, log)

    previous_dates = {task.id: task.start_date for task in partition.to_schedule}
    rescheduled = [
        RescheduledTask(task=task, old_date=previous_dates.get(task.id), new_date=task.start_date)
        for task in placed
        if previous_dates.get(task.id) != task.start_date
    ]

    log.info(
        "Scheduled %d flexible tasks (%d fixed), %d rescheduled, %d warnings",
        len(placed), len(fixed), len(rescheduled), len(warnings),
    )

    return ScheduleResult(
        tasks=fixed + placed,
        rescheduled_tasks=rescheduled,
        warnings=warnings,
        duplicates_removed=deduped.duplicates_removed,
    )
