from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from shared import time

TaskPriority = Literal["low", "medium", "high"]
TaskStatus = Literal["todo", "in-progress", "completed"]


class TaskItem(BaseModel):
    """Payload for a new task. Ownership and ids are added by the store."""
    title: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="Name of the goal this task belongs to")
    priority: TaskPriority = "medium"
    status: TaskStatus = "todo"
    due_date: datetime
    description: str = ""

    model_config = {"extra": "forbid"}

    @field_validator("due_date", mode="before")
    @classmethod
    def due_to_utc(cls, v):
        return time.parse_to_utc(v)


# Only the fields an update action may change
class TaskPatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    description: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("due_date", mode="before")
    @classmethod
    def due_to_utc(cls, v):
        return time.parse_to_utc(v)


def is_calendar_syncable(task: dict) -> bool:
    """Has a due date, was never pushed to the calendar, and is still open."""
    return bool(task.get("due_date")) and not task.get("google_event_id") and task.get("status") != "completed"
