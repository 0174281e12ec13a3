import logging
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from dates import DAY_FORMAT, parse_timestamp

logger = logging.getLogger(__name__)

Category = Literal["Work", "Home", "Health", "Personal"]
Importance = Literal["important", "not-important"]
Urgency = Literal["urgent", "not-urgent"]
RecurringInterval = Literal["daily", "weekly", "monthly"]
RecurringEndType = Literal["never", "after"]
Quadrant = Literal[
    "urgent-important",
    "not-urgent-important",
    "urgent-not-important",
    "not-urgent-not-important",
]

UNCATEGORIZED = "uncategorized"


def check_day(value: Optional[str]) -> Optional[str]:
    """Reject anything that is not a YYYY-MM-DD calendar day."""
    if value is None:
        return None
    # strptime alone accepts "2025-11-5"; the ledger keys days by exact string
    if datetime.strptime(value, DAY_FORMAT).strftime(DAY_FORMAT) != value:
        raise ValueError(f"{value!r} is not a zero-padded YYYY-MM-DD day")
    return value


class Task(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    category: Optional[Category] = None  # None is tracked as "uncategorized"
    estimated_hours: float = Field(1.0, ge=0)
    due_date: Optional[str] = None  # YYYY-MM-DD
    start_date: Optional[str] = None  # YYYY-MM-DD, assigned by the scheduler
    pinned_date: Optional[str] = None  # YYYY-MM-DD, "keep me on this day"
    completed: bool = False
    completed_at: Optional[str] = None
    importance: Importance = "not-important"
    urgency: Urgency = "not-urgent"
    is_recurring: bool = False
    recurring_series_id: Optional[str] = None
    recurring_interval: Optional[RecurringInterval] = None
    recurring_days: Optional[list[int]] = None  # weekdays 0=Sun..6=Sat, or [day_of_month]
    recurring_end_type: Optional[RecurringEndType] = None
    recurring_end_count: Optional[int] = None
    recurring_current_count: int = 1
    created_at: str  # ISO format datetime string

    @field_validator("due_date", "start_date", "pinned_date")
    @classmethod
    def _calendar_day(cls, value: Optional[str]) -> Optional[str]:
        return check_day(value)

    @field_validator("created_at")
    @classmethod
    def _timestamp(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class ScoredTask(Task):
    priority_score: float
    quadrant: Quadrant

    def as_task(self) -> Task:
        """Drop the scoring fields again."""
        return Task(**self.model_dump(exclude={"priority_score", "quadrant"}))


class ScoreBreakdown(BaseModel):
    base: float
    deadline: float
    duration: float
    age: float
    total: float


class DayLimits(BaseModel):
    """Hours allowed on a weekday / weekend day."""
    weekday: float = Field(ge=0, le=24)
    weekend: float = Field(ge=0, le=24)


class TaskLimits(BaseModel):
    """Number of tasks allowed on a weekday / weekend day."""
    weekday: int = Field(ge=1, le=20)
    weekend: int = Field(ge=1, le=20)


DEFAULT_DAILY_MAX_HOURS = DayLimits(weekday=8, weekend=6)
DEFAULT_DAILY_MAX_TASKS = TaskLimits(weekday=4, weekend=4)


class FallbackPolicy(BaseModel):
    # When True, a forced due-date placement still needs task-count room on
    # that day; hour caps are always soft once a deadline forces placement.
    enforce_task_cap: bool = True


class ScoringWeights(BaseModel):
    quadrant_scores: dict[str, float] = Field(default_factory=lambda: {
        "urgent-important": 100,
        "not-urgent-important": 80,
        "urgent-not-important": 60,
        "not-urgent-not-important": 40,
    })
    overdue_base: float = 200
    overdue_per_day: float = 25
    due_today: float = 150
    # (first_day, last_day, score_at_first_day, score_at_last_day)
    deadline_bands: list[tuple[int, int, float, float]] = Field(default_factory=lambda: [
        (1, 3, 140, 100),
        (4, 7, 90, 50),
        (8, 14, 50, 25),
        (15, 30, 20, 5),
    ])
    far_deadline: float = 5
    duration_multiplier: float = 15
    duration_min_days: float = 0.5
    age_per_day: float = 1
    age_cap: float = 10


class SchedulingSettings(BaseModel):
    """Per-user capacity configuration, as stored on the profile."""
    category_limits: dict[str, DayLimits] = Field(default_factory=dict)
    daily_max_hours: DayLimits = Field(default_factory=lambda: DEFAULT_DAILY_MAX_HOURS.model_copy())
    daily_max_tasks: TaskLimits = Field(default_factory=lambda: DEFAULT_DAILY_MAX_TASKS.model_copy())

    @classmethod
    def from_profile(cls, raw: Optional[dict[str, Any]]) -> "SchedulingSettings":
        """
        Build settings from an untrusted profile dict.
        Each section that is missing or invalid falls back to its default,
        so the scheduler never sees a partially valid object.
        """
        raw = raw or {}
        settings = cls()

        limits = raw.get("category_limits")
        if isinstance(limits, dict):
            for category, value in limits.items():
                try:
                    settings.category_limits[category] = DayLimits.model_validate(value)
                except ValidationError:
                    logger.warning("Ignoring invalid category limit for %s: %r", category, value)
        elif limits is not None:
            logger.warning("Ignoring invalid category_limits: %r", limits)

        for field, model in (("daily_max_hours", DayLimits), ("daily_max_tasks", TaskLimits)):
            value = raw.get(field)
            if value is None:
                continue
            try:
                setattr(settings, field, model.model_validate(value))
            except ValidationError:
                logger.warning("Invalid %s %r, using default", field, value)

        return settings


class SchedulingOptions(BaseModel):
    today: str
    look_ahead_days: int = Field(90, ge=1)
    category_limits: dict[str, DayLimits] = Field(default_factory=dict)
    daily_max_hours: DayLimits = Field(default_factory=lambda: DEFAULT_DAILY_MAX_HOURS.model_copy())
    daily_max_tasks: TaskLimits = Field(default_factory=lambda: DEFAULT_DAILY_MAX_TASKS.model_copy())
    fallback_policy: FallbackPolicy = Field(default_factory=FallbackPolicy)

    @field_validator("today")
    @classmethod
    def _calendar_day(cls, value: str) -> str:
        return check_day(value)


class CapacityCheckResult(BaseModel):
    can_fit: bool
    task_count: int
    category_hours: float
    total_hours: float
    max_tasks: int
    category_limit: float
    daily_limit: float
    reasons: list[str] = Field(default_factory=list)


class SlotResult(BaseModel):
    date: Optional[str] = None
    warning: Optional[str] = None


class TaskPartition(BaseModel):
    completed: list[Task] = Field(default_factory=list)
    recurring: list[Task] = Field(default_factory=list)
    pinned: list[Task] = Field(default_factory=list)
    to_schedule: list[Task] = Field(default_factory=list)


class DeduplicationResult(BaseModel):
    tasks: list[Task]
    duplicates_removed: list[str] = Field(default_factory=list)


class RescheduledTask(BaseModel):
    task: Task
    old_date: Optional[str] = None
    new_date: Optional[str] = None


class ScheduleResult(BaseModel):
    tasks: list[Task]
    rescheduled_tasks: list[RescheduledTask] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duplicates_removed: list[str] = Field(default_factory=list)


# Request bodies for the HTTP surface

class RescheduleRequest(BaseModel):
    tasks: list[Task]
    settings: Optional[dict[str, Any]] = None  # raw profile settings, validated leniently
    today: Optional[str] = None  # YYYY-MM-DD; resolved from timezone when omitted
    timezone: Optional[str] = None
    look_ahead_days: Optional[int] = Field(None, ge=1, le=365)

    @field_validator("today")
    @classmethod
    def _calendar_day(cls, value: Optional[str]) -> Optional[str]:
        return check_day(value)


class TaskListRequest(BaseModel):
    tasks: list[Task]
    today: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("today")
    @classmethod
    def _calendar_day(cls, value: Optional[str]) -> Optional[str]:
        return check_day(value)


class RecurrenceRequest(BaseModel):
    task: Task
    weeks_ahead: int = Field(4, ge=1, le=52)
    today: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("today")
    @classmethod
    def _calendar_day(cls, value: Optional[str]) -> Optional[str]:
        return check_day(value)
