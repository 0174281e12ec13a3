from typing import Iterable, Mapping, Union

from dates import is_weekend
from models import (
    UNCATEGORIZED,
    CapacityCheckResult,
    DayLimits,
    Task,
    TaskLimits,
)


def _category(task: Task) -> str:
    return task.category or UNCATEGORIZED


class CapacityLedger:
    """
    Per-day bookkeeping of what is already committed.

    Tracks three counters for every calendar day:
    1. Number of tasks
    2. Hours per category
    3. Total hours

    Every read and write is O(1). The ledger is rebuilt for each scheduling
    pass and is not safe to share between concurrent passes.
    """

    def __init__(
        self,
        category_limits: Mapping[str, Union[DayLimits, dict]],
        daily_max_hours: Union[DayLimits, dict],
        daily_max_tasks: Union[TaskLimits, dict],
    ):
        self.category_limits = {
            name: DayLimits.model_validate(limits) for name, limits in category_limits.items()
        }
        self.daily_max_hours = DayLimits.model_validate(daily_max_hours)
        self.daily_max_tasks = TaskLimits.model_validate(daily_max_tasks)

        self._tasks_per_day: dict[str, int] = {}
        self._category_hours_per_day: dict[str, dict[str, float]] = {}
        self._total_hours_per_day: dict[str, float] = {}

    def seed(self, tasks: Iterable[Task]) -> None:
        """Reserve capacity for tasks that are already placed and won't move."""
        for task in tasks:
            if task.start_date:
                self.reserve(task.start_date, task)

    def can_fit(self, date: str, task: Task) -> CapacityCheckResult:
        """
        Check whether task fits on date without changing anything.
        reasons lists every violated constraint, for diagnostics.
        """
        category = _category(task)
        hours = task.estimated_hours

        task_count = self.task_count(date)
        max_tasks = self.max_tasks_for(date)
        category_hours = self.category_hours(date, category)
        category_limit = self.category_limit_for(date, category)
        total_hours = self.total_hours(date)
        daily_limit = self.daily_limit_for(date)

        task_count_ok = task_count < max_tasks
        category_ok = category_hours + hours <= category_limit
        daily_ok = total_hours + hours <= daily_limit

        reasons = []
        if not task_count_ok:
            reasons.append(f"Task count ({task_count}/{max_tasks})")
        if not category_ok:
            reasons.append(f"Category hours ({category_hours:.1f}+{hours:g}>{category_limit:g})")
        if not daily_ok:
            reasons.append(f"Daily hours ({total_hours:.1f}+{hours:g}>{daily_limit:g})")

        return CapacityCheckResult(
            can_fit=task_count_ok and category_ok and daily_ok,
            task_count=task_count,
            category_hours=category_hours,
            total_hours=total_hours,
            max_tasks=max_tasks,
            category_limit=category_limit,
            daily_limit=daily_limit,
            reasons=reasons,
        )

    def reserve(self, date: str, task: Task) -> None:
        category = _category(task)
        hours = task.estimated_hours

        self._tasks_per_day[date] = self._tasks_per_day.get(date, 0) + 1
        day_categories = self._category_hours_per_day.setdefault(date, {})
        day_categories[category] = day_categories.get(category, 0.0) + hours
        self._total_hours_per_day[date] = self._total_hours_per_day.get(date, 0.0) + hours

    def release(self, task: Task) -> None:
        """Give back the capacity held on task.start_date. Never goes below zero."""
        if not task.start_date:
            return

        date = task.start_date
        category = _category(task)
        hours = task.estimated_hours

        count = self._tasks_per_day.get(date, 0)
        if count > 0:
            self._tasks_per_day[date] = count - 1

        day_categories = self._category_hours_per_day.get(date)
        if day_categories and day_categories.get(category, 0.0) > 0:
            day_categories[category] = max(0.0, day_categories[category] - hours)

        total = self._total_hours_per_day.get(date, 0.0)
        if total > 0:
            self._total_hours_per_day[date] = max(0.0, total - hours)

    def task_count(self, date: str) -> int:
        return self._tasks_per_day.get(date, 0)

    def category_hours(self, date: str, category: str) -> float:
        return self._category_hours_per_day.get(date, {}).get(category, 0.0)

    def total_hours(self, date: str) -> float:
        return self._total_hours_per_day.get(date, 0.0)

    def max_tasks_for(self, date: str) -> int:
        limits = self.daily_max_tasks
        return limits.weekend if is_weekend(date) else limits.weekday

    def category_limit_for(self, date: str, category: str) -> float:
        # Unconfigured categories are only bounded by the day's total hours
        limits = self.category_limits.get(category)
        if limits is None:
            return self.daily_limit_for(date)
        return limits.weekend if is_weekend(date) else limits.weekday

    def daily_limit_for(self, date: str) -> float:
        limits = self.daily_max_hours
        return limits.weekend if is_weekend(date) else limits.weekday

    def debug_info(self, date: str) -> dict:
        """Snapshot of one day's counters, for logging."""
        return {
            "task_count": self.task_count(date),
            "total_hours": self.total_hours(date),
            "category_hours": dict(self._category_hours_per_day.get(date, {})),
            "max_tasks": self.max_tasks_for(date),
            "daily_limit": self.daily_limit_for(date),
        }
