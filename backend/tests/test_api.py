"""
Tests for FastAPI endpoints in main.py.
Every endpoint works on the snapshot in the request body; nothing is stored.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

TODAY = "2025-11-25"
CREATED = f"{TODAY}T12:00:00"


def task_json(task_id, **fields):
    data = {"id": task_id, "title": task_id, "estimated_hours": 1, "created_at": CREATED}
    data.update(fields)
    return data


class TestRescheduleEndpoint:
    """Tests for /reschedule."""

    def test_reschedule_spreads_tasks(self, app_client):
        """Five tasks with default settings: four today, one tomorrow."""
        response = app_client.post("/reschedule", json={
            "tasks": [task_json(f"t{i}") for i in range(5)],
            "today": TODAY,
        })
        assert response.status_code == 200
        body = response.json()

        assert body["rescheduled"] == 5
        dates = [t["start_date"] for t in body["tasks"]]
        assert dates.count(TODAY) == 4
        assert dates.count("2025-11-26") == 1
        assert body["warnings"] == []

    def test_reschedule_uses_profile_settings(self, app_client):
        response = app_client.post("/reschedule", json={
            "tasks": [task_json(f"t{i}") for i in range(3)],
            "settings": {"daily_max_tasks": {"weekday": 2, "weekend": 2}},
            "today": TODAY,
        })
        dates = [t["start_date"] for t in response.json()["tasks"]]
        assert dates == [TODAY, TODAY, "2025-11-26"]

    def test_reschedule_ignores_invalid_settings(self, app_client):
        """A bad settings section falls back to defaults instead of failing."""
        response = app_client.post("/reschedule", json={
            "tasks": [task_json("t1")],
            "settings": {"daily_max_tasks": {"weekday": 0, "weekend": 99}},
            "today": TODAY,
        })
        assert response.status_code == 200
        assert response.json()["tasks"][0]["start_date"] == TODAY

    def test_reschedule_reports_changes(self, app_client):
        response = app_client.post("/reschedule", json={
            "tasks": [task_json("late", due_date="2025-11-20", start_date="2025-11-20")],
            "today": TODAY,
        })
        changed = response.json()["rescheduled_tasks"]

        assert len(changed) == 1
        assert changed[0]["task"]["id"] == "late"
        assert changed[0]["old_date"] == "2025-11-20"
        assert changed[0]["new_date"] == TODAY

    def test_reschedule_with_timezone(self, app_client):
        response = app_client.post("/reschedule", json={
            "tasks": [task_json("t1")],
            "timezone": "Australia/Sydney",
        })
        assert response.status_code == 200
        assert response.json()["tasks"][0]["start_date"] is not None

    def test_unknown_timezone(self, app_client):
        """Unknown timezone returns 400."""
        response = app_client.post("/reschedule", json={
            "tasks": [],
            "timezone": "Mars/Olympus_Mons",
        })
        assert response.status_code == 400

    def test_bad_date_rejected(self, app_client):
        """Malformed dates fail validation with 422."""
        response = app_client.post("/reschedule", json={
            "tasks": [task_json("t1", due_date="next tuesday")],
            "today": TODAY,
        })
        assert response.status_code == 422

    def test_unpadded_date_rejected(self, app_client):
        """A day like 2025-11-5 would slip past the capacity ledger, so it fails with 422."""
        response = app_client.post("/reschedule", json={
            "tasks": [task_json(f"done{i}", completed=True, start_date="2025-11-5") for i in range(4)]
            + [task_json("new")],
            "today": "2025-11-05",
        })
        assert response.status_code == 422

    def test_bad_created_at_rejected(self, app_client):
        response = app_client.post("/reschedule", json={
            "tasks": [task_json("t1", created_at="last week")],
            "today": TODAY,
        })
        assert response.status_code == 422

    def test_look_ahead_out_of_range(self, app_client):
        response = app_client.post("/reschedule", json={
            "tasks": [],
            "today": TODAY,
            "look_ahead_days": 0,
        })
        assert response.status_code == 422


class TestRecurrenceEndpoints:
    """Tests for /recurrence/*."""

    def test_next_instance(self, app_client):
        response = app_client.post("/recurrence/next", json={
            "task": task_json(
                "gym",
                is_recurring=True,
                recurring_interval="weekly",
                recurring_days=[0, 2, 4],
                due_date="2025-11-23",
                completed=True,
            ),
        })
        assert response.status_code == 200
        task = response.json()["task"]
        assert task["due_date"] == "2025-11-25"
        assert task["recurring_series_id"] == "gym"
        assert task["completed"] is False

    def test_next_instance_for_finished_series(self, app_client):
        response = app_client.post("/recurrence/next", json={
            "task": task_json(
                "gym",
                is_recurring=True,
                recurring_interval="daily",
                due_date="2025-11-23",
                recurring_end_type="after",
                recurring_end_count=2,
                recurring_current_count=2,
            ),
        })
        assert response.status_code == 200
        assert response.json()["task"] is None

    def test_initial_instances(self, app_client):
        response = app_client.post("/recurrence/initial", json={
            "task": task_json(
                "standup",
                is_recurring=True,
                recurring_interval="weekly",
                recurring_days=[1, 3],
                due_date="2025-11-24",
            ),
            "weeks_ahead": 1,
        })
        assert response.status_code == 200
        assert [t["due_date"] for t in response.json()] == ["2025-11-24", "2025-11-26", "2025-12-01"]


    def test_initial_instances_use_configured_timezone(self, app_client, monkeypatch):
        """Without due_date or today, the first week starts from today in TSKR_TIMEZONE."""
        import main

        zones = []

        def fake_today_in(tz_name):
            zones.append(tz_name)
            return TODAY

        monkeypatch.setattr(main, "today_in", fake_today_in)
        monkeypatch.setattr(main.config, "DEFAULT_TIMEZONE", "Pacific/Auckland")

        response = app_client.post("/recurrence/initial", json={
            "task": task_json("standup", is_recurring=True, recurring_interval="weekly", recurring_days=[2]),
            "weeks_ahead": 1,
        })
        assert response.status_code == 200
        assert [t["due_date"] for t in response.json()] == [TODAY, "2025-12-02"]
        assert zones == ["Pacific/Auckland"]

    def test_initial_instances_with_request_timezone(self, app_client, monkeypatch):
        import main

        zones = []
        monkeypatch.setattr(main, "today_in", lambda tz_name: zones.append(tz_name) or TODAY)

        app_client.post("/recurrence/initial", json={
            "task": task_json("standup", is_recurring=True, recurring_interval="weekly", recurring_days=[2]),
            "timezone": "Asia/Tokyo",
        })
        assert zones == ["Asia/Tokyo"]

    def test_initial_instances_unknown_timezone(self, app_client):
        response = app_client.post("/recurrence/initial", json={
            "task": task_json("standup", is_recurring=True, recurring_interval="weekly", recurring_days=[2]),
            "timezone": "Mars/Olympus_Mons",
        })
        assert response.status_code == 400


class TestPriorityEndpoints:
    """Tests for /priorities and /focus."""

    def test_priorities(self, app_client):
        response = app_client.post("/priorities", json={
            "tasks": [task_json("t1", importance="important", urgency="urgent", due_date="2025-11-23")],
            "today": TODAY,
        })
        assert response.status_code == 200
        entry = response.json()[0]

        assert entry["id"] == "t1"
        assert entry["quadrant"] == "urgent-important"
        assert entry["breakdown"]["base"] == 100
        assert entry["breakdown"]["deadline"] == 250
        assert entry["reason"] == "Overdue by 2 days"

    def test_focus(self, app_client):
        response = app_client.post("/focus", json={
            "tasks": [
                task_json("low", start_date=TODAY),
                task_json("high", start_date=TODAY, importance="important"),
                task_json("later", start_date="2025-11-26"),
            ],
            "today": TODAY,
        })
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["high", "low"]
