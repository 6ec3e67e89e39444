# models/action_item.py
from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"
    DELETE_ALL_TASKS = "delete_all_tasks"
    CREATE_GOAL = "create_goal"
    UPDATE_GOAL = "update_goal"
    DELETE_GOAL = "delete_goal"
    DELETE_ALL_GOALS = "delete_all_goals"
    SYNC_CALENDAR_EVENT = "sync_calendar_event"
    SYNC_BULK_CALENDAR = "sync_bulk_calendar"

    @classmethod
    def parse(cls, value: Any) -> Optional["ActionType"]:
        """Enum member for `value`, or None when it isn't a known action type."""
        try:
            return cls(value)
        except ValueError:
            return None


class ActionStatus(str, Enum):
    PROPOSED = "proposed"       # never stored: a descriptor without status is proposed
    PROCESSING = "processing"
    APPROVED = "approved"
    DECLINED = "declined"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({ActionStatus.APPROVED, ActionStatus.DECLINED, ActionStatus.FAILED})


class ActionDescriptor(BaseModel):
    """
    One proposed mutation as it lives in conversation state.

    Frozen: lifecycle transitions produce a new descriptor (see actions/lifecycle.py).
    `type` stays a plain string so malformed proposals can still be carried and
    reported as failed instead of being dropped.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: str
    data: Optional[Dict[str, Any]] = None
    status: Optional[ActionStatus] = None
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def lifecycle_status(self) -> ActionStatus:
        return self.status or ActionStatus.PROPOSED

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_status in TERMINAL_STATUSES

    @classmethod
    def from_proposal(cls, proposal: Mapping[str, Any]) -> "ActionDescriptor":
        raw_data = proposal.get("data")
        fields: Dict[str, Any] = {
            "type": str(proposal.get("type") or ""),
            "data": dict(raw_data) if isinstance(raw_data, Mapping) else None,
        }
        if proposal.get("id"):
            fields["id"] = str(proposal["id"])
        if proposal.get("status"):
            fields["status"] = ActionStatus(proposal["status"])
        if proposal.get("error"):
            fields["error"] = str(proposal["error"])
        return cls(**fields)

    def to_action(self) -> Dict[str, Any]:
        """Wire mapping handed to the executor. No status key while proposed."""
        out: Dict[str, Any] = {"id": self.id, "type": self.type, "data": self.data}
        if self.status is not None:
            out["status"] = self.status.value
        if self.error:
            out["error"] = self.error
        return out
