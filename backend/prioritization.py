"""
Priority scoring for the greedy scheduler.

score = Eisenhower base + deadline proximity + duration pressure + age

The score is the only sort key for placement order, so overdue work
(deadline term >= 200) always outranks everything else.
"""
from typing import Iterable, Optional

from dates import days_between
from models import ScoreBreakdown, ScoredTask, ScoringWeights, Task, Quadrant

DEFAULT_WEIGHTS = ScoringWeights()

# Tasks at or above this many hours get their size mentioned in the reason
LARGE_TASK_HOURS = 4

QUADRANT_REASONS = {
    "urgent-important": "Urgent + Important",
    "not-urgent-important": "High impact",
    "urgent-not-important": "Urgent",
}


def eisenhower_quadrant(task: Task) -> Quadrant:
    is_urgent = task.urgency == "urgent"
    is_important = task.importance == "important"

    if is_urgent and is_important:
        return "urgent-important"
    if is_important:
        return "not-urgent-important"
    if is_urgent:
        return "urgent-not-important"
    return "not-urgent-not-important"


def _days_until_due(task: Task, today: str) -> Optional[int]:
    if not task.due_date:
        return None
    return days_between(today, task.due_date)


def _days_since_created(task: Task, today: str) -> int:
    return max(0, days_between(task.created_at[:10], today))


def deadline_score(days_until_due: int, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Deadline proximity curve: steep near the due date, flat far away."""
    if days_until_due < 0:
        return weights.overdue_base + weights.overdue_per_day * -days_until_due
    if days_until_due == 0:
        return weights.due_today

    for first, last, start, end in weights.deadline_bands:
        if first <= days_until_due <= last:
            if last == first:
                return start
            return start + (end - start) * (days_until_due - first) / (last - first)

    return weights.far_deadline


def score_breakdown(task: Task, today: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ScoreBreakdown:
    base = weights.quadrant_scores[eisenhower_quadrant(task)]
    days_until_due = _days_until_due(task, today)

    deadline = 0.0
    if days_until_due is not None and not task.completed:
        deadline = deadline_score(days_until_due, weights)

    # Large tasks with near deadlines get pulled forward within a quadrant
    duration = 0.0
    if days_until_due is not None and days_until_due >= 0:
        duration = task.estimated_hours / max(days_until_due, weights.duration_min_days) * weights.duration_multiplier

    # Keeps undated backlog items from starving
    age = min(_days_since_created(task, today) * weights.age_per_day, weights.age_cap)

    return ScoreBreakdown(
        base=base,
        deadline=deadline,
        duration=duration,
        age=age,
        total=base + deadline + duration + age,
    )


def score_task(task: Task, today: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> tuple[float, Quadrant]:
    return score_breakdown(task, today, weights).total, eisenhower_quadrant(task)


def calculate_priority_score(task: Task, today: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    return score_breakdown(task, today, weights).total


def add_priority_scores(
    tasks: Iterable[Task], today: str, weights: ScoringWeights = DEFAULT_WEIGHTS
) -> list[ScoredTask]:
    scored = []
    for task in tasks:
        score, quadrant = score_task(task, today, weights)
        scored.append(ScoredTask(**task.model_dump(), priority_score=score, quadrant=quadrant))
    return scored


def sort_by_priority(tasks: list[ScoredTask]) -> list[ScoredTask]:
    """Highest score first. sorted() is stable, so ties keep input order."""
    return sorted(tasks, key=lambda t: t.priority_score, reverse=True)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def priority_reason(task: Task, today: str) -> str:
    """Short human explanation of why a task sits where it does."""
    if task.completed:
        return "Completed"

    days_until_due = _days_until_due(task, today)
    if days_until_due is not None:
        if days_until_due < 0:
            return f"Overdue by {_plural(-days_until_due, 'day')}"
        if days_until_due == 0:
            return "Due today"
        if days_until_due <= 3:
            due = "due tomorrow" if days_until_due == 1 else f"due in {days_until_due} days"
            if task.estimated_hours >= LARGE_TASK_HOURS:
                return f"{task.estimated_hours:g}h task, {due}"
            return due[0].upper() + due[1:]
        if days_until_due <= 7:
            return f"Due in {days_until_due} days"

    quadrant = eisenhower_quadrant(task)
    if quadrant in QUADRANT_REASONS:
        return QUADRANT_REASONS[quadrant]

    age = _days_since_created(task, today)
    if age > 0:
        return f"Aging {_plural(age, 'day')}"
    return "Scheduled today"


def todays_focus_tasks(tasks: Iterable[Task], today: str) -> list[Task]:
    """Incomplete tasks starting today by priority, then those already done today."""
    tasks = list(tasks)
    incomplete = [t for t in tasks if not t.completed and t.start_date == today]
    done = [t for t in tasks if t.completed and t.start_date == today]
    ranked = sort_by_priority(add_priority_scores(incomplete, today))
    return [t.as_task() for t in ranked] + done


def group_tasks_by_date(tasks: Iterable[Task], today: str) -> dict[str, list[Task]]:
    """Incomplete, dated tasks keyed by start_date, each day sorted by priority."""
    grouped: dict[str, list[Task]] = {}
    for task in tasks:
        if task.completed or not task.start_date:
            continue
        grouped.setdefault(task.start_date, []).append(task)

    return {
        date: [t.as_task() for t in sort_by_priority(add_priority_scores(day_tasks, today))]
        for date, day_tasks in grouped.items()
    }
