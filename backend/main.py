import logging
from typing import Optional
from zoneinfo import ZoneInfoNotFoundError

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

import config
from dates import today_in
from models import (
    RecurrenceRequest,
    RescheduleRequest,
    SchedulingSettings,
    Task,
    TaskListRequest,
)
from prioritization import eisenhower_quadrant, priority_reason, score_breakdown, todays_focus_tasks
from recurrence import initial_recurring_instances, next_recurring_instance
from scheduler import assign_start_dates

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("tskr")

app = FastAPI(title="tskr scheduler")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def resolve_today(today: Optional[str], timezone: Optional[str]) -> str:
    """Use the caller's day when given, else today in their timezone."""
    if today:
        return today
    try:
        return today_in(timezone or config.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {timezone}")


@app.post("/reschedule")
def reschedule(request: RescheduleRequest) -> dict:
    """Run one scheduling pass over the given snapshot. Nothing is persisted here."""
    today = resolve_today(request.today, request.timezone)
    settings = SchedulingSettings.from_profile(request.settings)

    result = assign_start_dates(
        request.tasks,
        settings.category_limits,
        settings.daily_max_hours,
        settings.daily_max_tasks,
        request.look_ahead_days or config.LOOK_AHEAD_DAYS,
        today=today,
    )
    logger.info("[reschedule] %d tasks to update", len(result.rescheduled_tasks))

    return {
        **result.model_dump(),
        "rescheduled": len(result.rescheduled_tasks),
    }


@app.post("/recurrence/next")
def recurrence_next(request: RecurrenceRequest) -> dict:
    """Next occurrence of a completed recurring task, or null when the series is over."""
    instance = next_recurring_instance(request.task)
    return {"task": instance.model_dump() if instance else None}


@app.post("/recurrence/initial")
def recurrence_initial(request: RecurrenceRequest) -> list[Task]:
    today = resolve_today(request.today, request.timezone)
    return initial_recurring_instances(request.task, request.weeks_ahead, today)


@app.post("/priorities")
def priorities(request: TaskListRequest) -> list[dict]:
    """Score breakdown and a short reason for each task."""
    today = resolve_today(request.today, request.timezone)
    return [
        {
            "id": task.id,
            "quadrant": eisenhower_quadrant(task),
            "breakdown": score_breakdown(task, today).model_dump(),
            "reason": priority_reason(task, today),
        }
        for task in request.tasks
    ]


@app.post("/focus")
def focus(request: TaskListRequest) -> list[Task]:
    today = resolve_today(request.today, request.timezone)
    return todays_focus_tasks(request.tasks, today)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
