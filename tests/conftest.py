import os

# Must run before anything imports observability.langfuse_client
os.environ["LANGFUSE_TRACING_ENABLED"] = "false"
os.environ.setdefault("LANGFUSE_PUBLIC_KEY", "pk-lf-test")
os.environ.setdefault("LANGFUSE_SECRET_KEY", "sk-lf-test")
os.environ.setdefault("LANGFUSE_HOST", "http://localhost:3000")
os.environ["STORE_BACKEND"] = "memory"

from datetime import datetime, timezone

import pytest

from actions.executor import ActionExecutor
from models.task_item import is_calendar_syncable
from shared import time
from store.memory_store import InMemoryEntityStore

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
OWNER = "user-1"
OTHER = "user-2"


class FakeCalendar:
    """Records calls instead of talking to Google."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.created = []
        self.fail_titles = set()

    def is_connected(self, owner_id):
        return self.connected

    def create_task_event(self, owner_id, task, start=None):
        self.created.append({"owner": owner_id, "task": task, "start": start})
        n = len(self.created)
        return {"id": f"evt-{n}", "link": f"https://calendar.google.com/event?eid=evt-{n}"}

    def sync_all(self, owner_id, tasks):
        syncable = [t for t in tasks if is_calendar_syncable(t)]
        out = {"success": 0, "failed": 0, "skipped": len(tasks) - len(syncable), "errors": [], "synced": []}
        for task in syncable:
            if task["title"] in self.fail_titles:
                out["failed"] += 1
                out["errors"].append({"taskId": task["item_id"], "taskTitle": task["title"], "error": "boom"})
                continue
            event = self.create_task_event(owner_id, task)
            out["success"] += 1
            out["synced"].append({"taskId": task["item_id"], "eventId": event["id"]})
        return out


@pytest.fixture(autouse=True)
def frozen_clock():
    time.set_fake_utcnow(NOW)
    yield NOW
    time.clear_fake_utcnow()


@pytest.fixture
def tasks():
    return InMemoryEntityStore("task")


@pytest.fixture
def goals():
    return InMemoryEntityStore("goal")


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def executor(tasks, goals, calendar):
    return ActionExecutor(tasks, goals, calendar)


@pytest.fixture
def make_task(tasks):
    def _make(owner=OWNER, **fields):
        payload = {
            "title": "Write report",
            "category": "Work",
            "priority": "medium",
            "status": "todo",
            "due_date": NOW,
            "description": "",
        }
        payload.update(fields)
        return tasks.create(owner, payload)
    return _make


@pytest.fixture
def make_goal(goals):
    def _make(owner=OWNER, **fields):
        payload = {"title": "Get fit", "description": "Goal: Get fit", "progress": 0, "priority": "medium"}
        payload.update(fields)
        return goals.create(owner, payload)
    return _make
