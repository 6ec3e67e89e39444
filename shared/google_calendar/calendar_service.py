# google_calendar/calendar_service.py
from __future__ import annotations

import logging
import random
import time as _time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from actions.errors import CalendarNotConnected, ExternalServiceError
from models.task_item import is_calendar_syncable
from shared import time
from shared.config import CALENDAR_EVENT_MINUTES, CALENDAR_ID
from shared.google_calendar.token_cache import clear_cached_credentials, get_cached_credentials

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


def _execute_with_retry(req, max_attempts: int = 5):
    delay = 0.5
    for attempt in range(1, max_attempts + 1):
        try:
            return req.execute(num_retries=0)  # we handle retries ourselves
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status in RETRYABLE_STATUSES and attempt < max_attempts:
                _time.sleep(delay + random.uniform(0, 0.2))
                delay = min(delay * 2, 8.0)
                continue
            raise


def event_body(task: Dict[str, Any], start: datetime, minutes: int = CALENDAR_EVENT_MINUTES) -> Dict[str, Any]:
    """Calendar event for a task: fixed-length block at `start`, user's default reminders."""
    description = task.get("description") or (
        f"Focusphere Task | Category: {task.get('category')} | Priority: {task.get('priority')}"
    )
    return {
        "summary": task.get("title"),
        "description": description,
        "start": {"dateTime": time.to_iso(start), "timeZone": "UTC"},
        "end": {"dateTime": time.to_iso(start + timedelta(minutes=minutes)), "timeZone": "UTC"},
        "reminders": {"useDefault": True},
    }


class CalendarService:
    """
    Pushes tasks to the owner's Google Calendar.
    Credentials come from the token cache; a missing or revoked token surfaces as CalendarNotConnected.
    """

    def __init__(
        self,
        credentials_provider: Callable[[str], Optional[Credentials]] = get_cached_credentials,
        calendar_id: str = CALENDAR_ID,
        event_minutes: int = CALENDAR_EVENT_MINUTES,
    ):
        self._credentials = credentials_provider
        self.calendar_id = calendar_id
        self.event_minutes = event_minutes

    def _svc(self, user_id: str):
        creds = self._credentials(user_id)
        if not creds:
            raise CalendarNotConnected()
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def _insert(self, svc, user_id: str, task: Dict[str, Any], start: datetime) -> Dict[str, Any]:
        body = event_body(task, start, self.event_minutes)
        try:
            event = _execute_with_retry(svc.events().insert(calendarId=self.calendar_id, body=body))
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status == 401:
                clear_cached_credentials(user_id)
                raise CalendarNotConnected()
            reason = getattr(e, "reason", None) or str(e)
            raise ExternalServiceError(f"Google Calendar error ({status}): {reason}")
        return {"id": event.get("id"), "link": event.get("htmlLink")}

    @staticmethod
    def _start_for(task: Dict[str, Any], start: Optional[Any]) -> datetime:
        when = time.parse_to_utc(start) if start is not None else time.parse_to_utc(task.get("due_date"))
        if when is None:
            raise ExternalServiceError("Task has no due date to schedule")
        return when

    # ---------- API ----------

    def is_connected(self, user_id: str) -> bool:
        return self._credentials(user_id) is not None

    def create_task_event(self, user_id: str, task: Dict[str, Any], start: Optional[Any] = None) -> Dict[str, Any]:
        """Insert one event. `start` overrides the task's due date. Returns {id, link}."""
        when = self._start_for(task, start)
        svc = self._svc(user_id)
        created = self._insert(svc, user_id, task, when)
        logger.info("[GCAL] Created event %s for task %s (user %s)", created["id"], task.get("item_id"), user_id)
        return created

    def sync_all(self, user_id: str, tasks: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Push every syncable task (due date, no event yet, not completed).
        Per-task failures are collected, never raised.
        Returns {success, failed, skipped, errors: [{taskId, taskTitle, error}], synced: [{taskId, eventId}]}.
        """
        svc = self._svc(user_id)
        syncable = [t for t in tasks if is_calendar_syncable(t)]
        out: Dict[str, Any] = {
            "success": 0, "failed": 0, "skipped": len(tasks) - len(syncable), "errors": [], "synced": [],
        }

        for task in syncable:
            try:
                created = self._insert(svc, user_id, task, self._start_for(task, None))
            except ExternalServiceError as e:
                out["failed"] += 1
                out["errors"].append({"taskId": task.get("item_id"), "taskTitle": task.get("title"), "error": e.message})
                continue
            out["success"] += 1
            out["synced"].append({"taskId": task.get("item_id"), "eventId": created["id"]})

        logger.info("[GCAL] Bulk sync for %s: %d ok, %d failed, %d skipped",
                    user_id, out["success"], out["failed"], out["skipped"])
        return out
