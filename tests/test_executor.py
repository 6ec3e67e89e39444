from datetime import timedelta
from unittest.mock import patch

import pytest

from actions.executor import ActionExecutor
from models.action_item import ActionDescriptor
from store.entity_store import VersionConflict

OWNER = "user-1"
OTHER = "user-2"


def _create_task(title="Write report", category="Work", **extra):
    return {"type": "create_task", "data": {"title": title, "category": category, **extra}}


def _summary_sums(batch):
    s = batch.summary
    return s.succeeded + s.failed == s.total == len(batch.results)

# ---------------------------------------------------------------------------
# Validation never reaches the store
# ---------------------------------------------------------------------------

def test_missing_required_field_makes_zero_store_calls(executor, tasks):
    with patch.object(tasks, "create", wraps=tasks.create) as create:
        result = executor.execute_action({"type": "create_task", "data": {"title": "No category"}}, OWNER)

    assert result.success is False
    assert result.error == "Missing required field: category"
    assert result.code == "validation_error"
    create.assert_not_called()


def test_empty_owner_aborts_before_the_loop(executor):
    with pytest.raises(ValueError):
        executor.execute_batch([_create_task()], "")

# ---------------------------------------------------------------------------
# Batch semantics
# ---------------------------------------------------------------------------

def test_one_failure_does_not_stop_the_batch(executor, tasks):
    batch = executor.execute_batch(
        [
            _create_task("A"),
            {"type": "delete_task", "data": {"taskId": "does-not-exist"}},
            _create_task("C"),
        ],
        OWNER,
    )

    assert [r.success for r in batch.results] == [True, False, True]
    assert batch.results[1].error == "Task not found or unauthorized"
    assert batch.results[1].code == "not_found"
    assert [t["title"] for t in tasks.list(OWNER)] == ["A", "C"]
    assert _summary_sums(batch)
    assert (batch.summary.succeeded, batch.summary.failed) == (2, 1)


def test_empty_batch(executor):
    batch = executor.execute_batch([], OWNER)
    assert batch.results == []
    assert _summary_sums(batch)


def test_pending_task_id_links_to_the_task_created_earlier(executor, tasks, calendar):
    batch = executor.execute_batch(
        [_create_task("A"), {"type": "sync_calendar_event", "data": {"taskId": "pending"}}],
        OWNER,
    )

    created_id = batch.results[0].data["id"]
    assert batch.results[1].success is True
    assert batch.results[1].data["taskId"] == created_id
    assert calendar.created[0]["task"]["item_id"] == created_id
    assert tasks.find(OWNER, created_id)["google_event_id"] == "evt-1"


def test_pending_after_failed_create_is_a_dependency_error(executor, calendar):
    batch = executor.execute_batch(
        [{"type": "create_task", "data": {"title": "A"}},
         {"type": "sync_calendar_event", "data": {"taskId": "pending"}}],
        OWNER,
    )

    sync = batch.results[1]
    assert sync.success is False
    assert sync.code == "dependency_error"
    assert sync.error == "No task was created to sync to calendar"
    assert calendar.created == []


def test_caller_actions_are_not_mutated(executor):
    actions = [_create_task("A"), {"type": "sync_calendar_event", "data": {"taskId": "pending"}}]
    executor.execute_batch(actions, OWNER)
    assert actions[1]["data"]["taskId"] == "pending"


def test_results_are_timestamped_in_order(executor, frozen_clock):
    batch = executor.execute_batch([_create_task("A"), _create_task("B")], OWNER)
    assert [r.data["title"] for r in batch.results] == ["A", "B"]
    assert all(r.timestamp == frozen_clock for r in batch.results)


def test_terminal_actions_are_skipped_without_store_calls(executor, tasks):
    approved = {"type": "create_task", "status": "approved", "data": {"title": "A", "category": "Work"}}
    failed = {"type": "create_task", "status": "failed", "error": "boom", "data": {"title": "B", "category": "Work"}}

    with patch.object(tasks, "create", wraps=tasks.create) as create:
        batch = executor.execute_batch([approved, failed], OWNER)

    create.assert_not_called()
    assert all(r.skipped for r in batch.results)
    assert batch.results[0].success is True
    assert batch.results[1].success is False
    assert batch.results[1].error == "boom"


def test_descriptors_are_accepted(executor):
    action = ActionDescriptor.from_proposal(_create_task("From descriptor"))
    assert executor.execute_action(action, OWNER).data["title"] == "From descriptor"


def test_unexpected_errors_become_internal_error(executor, tasks):
    with patch.object(tasks, "create", side_effect=RuntimeError("firestore down")):
        result = executor.execute_action(_create_task(), OWNER)

    assert result.success is False
    assert result.code == "internal_error"
    assert result.error == "firestore down"

# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def test_create_task_defaults(executor, frozen_clock):
    result = executor.execute_action(_create_task(), OWNER)

    assert result.success is True
    assert result.action_type == "create_task"
    assert result.data["status"] == "todo"
    assert result.data["priority"] == "medium"
    assert result.data["due_date"][:10] == (frozen_clock + timedelta(days=2)).date().isoformat()


def test_create_task_blank_optional_fields_fall_back_to_defaults(executor, frozen_clock):
    result = executor.execute_action(_create_task(priority="", status="  ", due_date=""), OWNER)

    assert result.success is True
    assert result.data["priority"] == "medium"
    assert result.data["status"] == "todo"
    assert result.data["due_date"][:10] == (frozen_clock + timedelta(days=2)).date().isoformat()


def test_create_task_reads_fields_from_updates(executor, tasks):
    result = executor.execute_action(
        {"type": "create_task", "data": {"title": "Top", "updates": {"title": "Nested", "category": "Work"}}},
        OWNER,
    )

    assert result.success is True
    assert result.data["title"] == "Top"
    assert result.data["category"] == "Work"
    assert tasks.list(OWNER)[0]["category"] == "Work"


def test_create_task_with_invalid_priority(executor):
    result = executor.execute_action(_create_task(priority="urgent"), OWNER)
    assert result.success is False
    assert result.code == "validation_error"
    assert result.error.startswith("Invalid task field 'priority'")


def test_update_other_owners_task_is_not_found(executor, make_task):
    task = make_task(owner=OTHER)
    result = executor.execute_action(
        {"type": "update_task", "data": {"taskId": task["item_id"], "updates": {"status": "completed"}}},
        OWNER,
    )
    assert result.success is False
    assert result.error == "Task not found or unauthorized"


def test_update_merges_top_level_fields_but_updates_win(executor, tasks, make_task):
    task = make_task()
    result = executor.execute_action(
        {"type": "update_task", "data": {
            "taskId": task["item_id"],
            "title": "Top level",
            "priority": "high",
            "updates": {"title": "Nested"},
        }},
        OWNER,
    )

    assert result.success is True
    assert set(result.data["updatedFields"]) == {"title", "priority"}
    stored = tasks.find(OWNER, task["item_id"])
    assert stored["title"] == "Nested"
    assert stored["priority"] == "high"
    assert stored["version"] == 2


def test_update_strips_store_owned_fields(executor, tasks, make_task):
    task = make_task()
    executor.execute_action(
        {"type": "update_task", "data": {"taskId": task["item_id"], "updates": {"user_id": OTHER, "status": "in-progress"}}},
        OWNER,
    )
    assert tasks.find(OWNER, task["item_id"])["status"] == "in-progress"


def test_update_rejects_unknown_fields(executor, make_task):
    task = make_task()
    result = executor.execute_action(
        {"type": "update_task", "data": {"taskId": task["item_id"], "updates": {"colour": "red"}}},
        OWNER,
    )
    assert result.success is False
    assert result.code == "validation_error"


def test_stale_version_is_a_conflict(executor, make_task):
    task = make_task()
    result = executor.execute_action(
        {"type": "update_task", "data": {"taskId": task["item_id"], "version": 7, "status": "completed"}},
        OWNER,
    )
    assert result.success is False
    assert result.code == "conflict"
    assert result.error == "Task was modified by another request, please retry"


def test_concurrent_write_between_read_and_delete(executor, tasks, make_task):
    task = make_task()
    with patch.object(tasks, "delete", side_effect=VersionConflict(task["item_id"], 1, 2)):
        result = executor.execute_action({"type": "delete_task", "data": {"taskId": task["item_id"]}}, OWNER)
    assert result.code == "conflict"


def test_delete_task(executor, tasks, make_task):
    task = make_task(title="Old")
    result = executor.execute_action({"type": "delete_task", "data": {"taskId": task["item_id"]}}, OWNER)
    assert result.data == {"id": task["item_id"], "title": "Old", "deleted": True}
    assert tasks.find(OWNER, task["item_id"]) is None


def test_delete_all_tasks_with_nothing_to_delete(executor):
    result = executor.execute_action({"type": "delete_all_tasks", "data": {}}, OWNER)
    assert result.success is True
    assert result.data == {"deletedCount": 0, "deleted": True}


def test_delete_all_tasks_is_owner_scoped(executor, tasks, make_task):
    make_task()
    make_task()
    make_task(owner=OTHER)
    result = executor.execute_action({"type": "delete_all_tasks", "data": {}}, OWNER)
    assert result.data["deletedCount"] == 2
    assert len(tasks.list(OTHER)) == 1

# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def test_create_goal_defaults(executor, goals):
    result = executor.execute_action({"type": "create_goal", "data": {"title": "Run a 10k", "priority": "HIGH"}}, OWNER)
    assert result.data["progress"] == 0
    assert result.data["priority"] == "high"
    assert goals.find(OWNER, result.data["id"])["description"] == "Goal: Run a 10k"


def test_update_goal_progress_zero_is_applied(executor, goals, make_goal):
    goal = make_goal(progress=40)
    result = executor.execute_action({"type": "update_goal", "data": {"goalId": goal["item_id"], "progress": 0}}, OWNER)
    assert result.data["updatedFields"] == ["progress"]
    assert goals.find(OWNER, goal["item_id"])["progress"] == 0


def test_update_goal_out_of_range(executor, make_goal):
    goal = make_goal()
    result = executor.execute_action({"type": "update_goal", "data": {"goalId": goal["item_id"], "progress": 150}}, OWNER)
    assert result.code == "validation_error"


def test_delete_goal_of_other_owner(executor, make_goal):
    goal = make_goal(owner=OTHER)
    result = executor.execute_action({"type": "delete_goal", "data": {"goalId": goal["item_id"]}}, OWNER)
    assert result.error == "Goal not found or unauthorized"

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

def test_sync_requires_connected_calendar(executor, calendar, make_task):
    calendar.connected = False
    task = make_task()
    result = executor.execute_action({"type": "sync_calendar_event", "data": {"taskId": task["item_id"]}}, OWNER)
    assert result.success is False
    assert result.code == "external_service_error"
    assert result.error.startswith("Google Calendar not connected")


def test_sync_unknown_task(executor):
    result = executor.execute_action({"type": "sync_calendar_event", "data": {"taskId": "nope"}}, OWNER)
    assert result.error == "Task not found"


def test_sync_passes_start_override(executor, calendar, make_task):
    task = make_task(title="Dentist")
    result = executor.execute_action(
        {"type": "sync_calendar_event", "data": {"taskId": task["item_id"], "startDateTime": "2025-03-12T15:00:00Z"}},
        OWNER,
    )
    assert calendar.created[0]["start"] == "2025-03-12T15:00:00Z"
    assert result.data["taskTitle"] == "Dentist"
    assert result.data["calendarEventId"] == "evt-1"
    assert result.data["synced"] is True


def test_bulk_sync_records_event_ids_and_tolerates_failures(executor, tasks, calendar, make_task):
    ok = make_task(title="OK")
    make_task(title="Broken")
    make_task(title="Done", status="completed")
    calendar.fail_titles = {"Broken"}

    result = executor.execute_action({"type": "sync_bulk_calendar", "data": {}}, OWNER)

    assert result.success is True
    assert result.data["message"] == "Synced 1 tasks to Google Calendar"
    assert (result.data["success"], result.data["failed"], result.data["skipped"]) == (1, 1, 1)
    assert result.data["errors"][0]["taskTitle"] == "Broken"
    assert tasks.find(OWNER, ok["item_id"])["google_event_id"] == "evt-1"


def test_bulk_sync_with_no_tasks(executor):
    result = executor.execute_action({"type": "sync_bulk_calendar", "data": {}}, OWNER)
    assert result.data["message"] == "No tasks to sync"
