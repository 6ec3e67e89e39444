# actions/handlers.py
"""
One mutation handler per action type.

Handlers receive the validated, dependency-resolved `data` mapping and the
owner id, talk to the entity stores / calendar, and return the minimal
identifying fields for the result. Failures are raised as ActionError
subclasses; the executor turns them into failed results.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from actions.errors import (
    CalendarNotConnected,
    ConcurrentModification,
    InvalidAction,
    NotFoundOrUnauthorized,
    UnknownActionType,
)
from actions.validator import is_present
from models.action_item import ActionType
from models.goal_item import GoalItem, GoalPatch
from models.task_item import TaskItem, TaskPatch
from shared import time
from shared.config import DEFAULT_TASK_DUE_DAYS
from store.entity_store import PROTECTED_FIELDS, Entity, EntityStore, VersionConflict

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any], str], Dict[str, Any]]

# Top-level fields an update action may carry next to (or instead of) `updates`
TASK_CONVENIENCE_FIELDS = ("title", "category", "priority", "status", "due_date", "description")
GOAL_CONVENIENCE_FIELDS = ("title", "description", "priority", "deadline")


def _validated(model: Type[BaseModel], payload: Dict[str, Any], kind: str) -> BaseModel:
    try:
        return model(**payload)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or kind
        raise InvalidAction(f"Invalid {kind} field '{field}': {err.get('msg')}")


def _create_fields(model: Type[BaseModel], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Top-level fields first, then `updates`. Blank strings count as absent so model defaults apply."""
    updates = data.get("updates") or {}
    fields: Dict[str, Any] = {}
    for key in model.model_fields:
        for source in (data, updates):
            if is_present(source.get(key)):
                fields[key] = source[key]
                break
    return fields


def merge_updates(data: Mapping[str, Any], convenience_fields, *, progress: bool = False) -> Dict[str, Any]:
    """
    Nested `updates` wins; top-level fields only fill keys it doesn't have.
    Store-owned keys and None values are dropped.
    """
    updates = dict(data.get("updates") or {})
    for key in convenience_fields:
        if data.get(key) and not updates.get(key):
            updates[key] = data[key]
    if progress and data.get("progress") is not None and updates.get("progress") is None:
        updates["progress"] = data["progress"]
    return {k: v for k, v in updates.items() if k not in PROTECTED_FIELDS and v is not None}


class ActionHandlers:
    def __init__(self, tasks: EntityStore, goals: EntityStore, calendar):
        self.tasks = tasks
        self.goals = goals
        self.calendar = calendar
        self.table: Dict[ActionType, Handler] = {t: getattr(self, name) for t, name in HANDLER_NAMES.items()}

    def dispatch(self, action_type: ActionType, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        handler = self.table.get(action_type)
        if handler is None:
            raise UnknownActionType()
        return handler(data, owner_id)

    # ---------------------- shared helpers -----------------------------------

    @staticmethod
    def _owned(store: EntityStore, owner_id: str, item_id: Any, label: str) -> Entity:
        entity = store.find(owner_id, str(item_id))
        if entity is None:
            raise NotFoundOrUnauthorized(f"{label} not found or unauthorized")
        return entity

    @staticmethod
    def _expected_version(data: Mapping[str, Any], entity: Entity) -> Optional[int]:
        explicit = data.get("version")
        if isinstance(explicit, int) and not isinstance(explicit, bool):
            return explicit
        return entity.get("version")

    def _update(self, store: EntityStore, data: Mapping[str, Any], owner_id: str, id_field: str,
                patch_model: Type[BaseModel], updates: Dict[str, Any], label: str) -> Dict[str, Any]:
        item_id = data[id_field]
        entity = self._owned(store, owner_id, item_id, label)
        patch = _validated(patch_model, updates, label.lower())
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        try:
            updated = store.update(owner_id, str(item_id), changes,
                                   expected_version=self._expected_version(data, entity))
        except VersionConflict:
            raise ConcurrentModification(f"{label} was modified by another request, please retry")
        if updated is None:
            raise NotFoundOrUnauthorized(f"{label} not found or unauthorized")
        return {"id": updated["item_id"], "title": updated.get("title"), "updatedFields": list(changes)}

    def _delete(self, store: EntityStore, data: Mapping[str, Any], owner_id: str,
                id_field: str, label: str) -> Dict[str, Any]:
        item_id = data[id_field]
        entity = self._owned(store, owner_id, item_id, label)
        try:
            deleted = store.delete(owner_id, str(item_id), expected_version=self._expected_version(data, entity))
        except VersionConflict:
            raise ConcurrentModification(f"{label} was modified by another request, please retry")
        if deleted is None:
            raise NotFoundOrUnauthorized(f"{label} not found or unauthorized")
        return {"id": deleted["item_id"], "title": deleted.get("title"), "deleted": True}

    def _require_calendar(self, owner_id: str) -> None:
        if not self.calendar.is_connected(owner_id):
            raise CalendarNotConnected()

    # --------------------------- tasks ---------------------------------------

    def create_task(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        fields = _create_fields(TaskItem, data)
        fields.setdefault("due_date", time.days_from_now(DEFAULT_TASK_DUE_DAYS))
        item = _validated(TaskItem, fields, "task")

        task = self.tasks.create(owner_id, item.model_dump())
        return {
            "id": task["item_id"],
            "title": task["title"],
            "category": task["category"],
            "priority": task["priority"],
            "status": task["status"],
            "due_date": time.to_iso(task["due_date"]),
        }

    def update_task(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        updates = merge_updates(data, TASK_CONVENIENCE_FIELDS)
        return self._update(self.tasks, data, owner_id, "taskId", TaskPatch, updates, "Task")

    def delete_task(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        return self._delete(self.tasks, data, owner_id, "taskId", "Task")

    def delete_all_tasks(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        return {"deletedCount": self.tasks.delete_all(owner_id), "deleted": True}

    # --------------------------- goals ---------------------------------------

    def create_goal(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        item = _validated(GoalItem, _create_fields(GoalItem, data), "goal")
        goal = self.goals.create(owner_id, item.model_dump())
        return {
            "id": goal["item_id"],
            "title": goal["title"],
            "progress": goal["progress"],
            "priority": goal["priority"],
        }

    def update_goal(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        updates = merge_updates(data, GOAL_CONVENIENCE_FIELDS, progress=True)
        return self._update(self.goals, data, owner_id, "goalId", GoalPatch, updates, "Goal")

    def delete_goal(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        return self._delete(self.goals, data, owner_id, "goalId", "Goal")

    def delete_all_goals(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        return {"deletedCount": self.goals.delete_all(owner_id), "deleted": True}

    # -------------------------- calendar -------------------------------------

    def sync_calendar_event(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        self._require_calendar(owner_id)

        task_id = str(data["taskId"])
        task = self.tasks.find(owner_id, task_id)
        if task is None:
            raise NotFoundOrUnauthorized("Task not found")

        event = self.calendar.create_task_event(owner_id, task, start=data.get("startDateTime"))
        # event already exists; record it regardless of concurrent edits to the task
        self.tasks.update(owner_id, task_id, {"google_event_id": event["id"]})
        logger.info("[TASKS] Linked calendar event %s to task %s", event["id"], task_id)

        return {
            "taskId": task_id,
            "taskTitle": task.get("title"),
            "calendarEventId": event["id"],
            "calendarLink": event.get("link"),
            "synced": True,
        }

    def sync_bulk_calendar(self, data: Mapping[str, Any], owner_id: str) -> Dict[str, Any]:
        self._require_calendar(owner_id)

        tasks = self.tasks.list(owner_id)
        if not tasks:
            return {"message": "No tasks to sync", "success": 0, "failed": 0, "skipped": 0}

        outcome = self.calendar.sync_all(owner_id, tasks)
        for synced in outcome.get("synced", []):
            self.tasks.update(owner_id, synced["taskId"], {"google_event_id": synced["eventId"]})

        return {
            "message": f"Synced {outcome['success']} tasks to Google Calendar",
            "success": outcome["success"],
            "failed": outcome["failed"],
            "skipped": outcome["skipped"],
            "errors": outcome["errors"],
        }


HANDLER_NAMES: Dict[ActionType, str] = {t: t.value for t in ActionType}


def _check_complete() -> None:
    missing = [t.value for t, name in HANDLER_NAMES.items() if not callable(getattr(ActionHandlers, name, None))]
    if missing:
        raise RuntimeError(f"Action types without a handler: {', '.join(missing)}")


_check_complete()
