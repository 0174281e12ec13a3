"""
Shared pytest fixtures for backend tests.
Everything runs against in-memory task lists; there is no database.
"""
import itertools
import pytest
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from capacity import CapacityLedger
from models import DayLimits, SchedulingOptions, Task, TaskLimits

# 2025-11-25 is a Tuesday; 2025-11-29/30 are the weekend
TODAY = "2025-11-25"

CATEGORY_LIMITS = {
    "Work": DayLimits(weekday=6, weekend=2),
    "Home": DayLimits(weekday=3, weekend=4),
    "Health": DayLimits(weekday=3, weekend=2),
    "Personal": DayLimits(weekday=2, weekend=4),
}
DAILY_MAX_HOURS = DayLimits(weekday=10, weekend=6)
DAILY_MAX_TASKS = TaskLimits(weekday=4, weekend=4)


@pytest.fixture
def make_task():
    """
    Factory for tasks with sensible defaults: one hour, no category,
    no due date, created today (age bonus 0).
    """
    ids = itertools.count(1)

    def _make(**overrides) -> Task:
        task_id = overrides.pop("id", f"task-{next(ids)}")
        fields = {
            "id": task_id,
            "title": task_id,
            "estimated_hours": 1,
            "created_at": f"{TODAY}T12:00:00",
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def ledger():
    return CapacityLedger(CATEGORY_LIMITS, DAILY_MAX_HOURS, DAILY_MAX_TASKS)


@pytest.fixture
def options():
    return SchedulingOptions(
        today=TODAY,
        look_ahead_days=90,
        category_limits=CATEGORY_LIMITS,
        daily_max_hours=DAILY_MAX_HOURS,
        daily_max_tasks=DAILY_MAX_TASKS,
    )


@pytest.fixture
def app_client():
    """Test client for the FastAPI app."""
    from fastapi.testclient import TestClient
    import main

    with TestClient(main.app) as client:
        yield client
