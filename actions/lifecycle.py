# actions/lifecycle.py
"""
Approval lifecycle of an ActionDescriptor.

    proposed ──approve──> processing ──> approved | failed
        └─────decline───> declined

Every transition returns a new descriptor; terminal states never change again.
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional

from actions.errors import InvalidTransition
from models.action_item import ActionDescriptor, ActionStatus
from models.execution_result import ExecutionResult

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ActionStatus, FrozenSet[ActionStatus]] = {
    ActionStatus.PROPOSED: frozenset({ActionStatus.PROCESSING, ActionStatus.DECLINED}),
    ActionStatus.PROCESSING: frozenset({ActionStatus.APPROVED, ActionStatus.FAILED}),
    ActionStatus.APPROVED: frozenset(),
    ActionStatus.DECLINED: frozenset(),
    ActionStatus.FAILED: frozenset(),
}


def can_transition(current: ActionStatus, target: ActionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(action: ActionDescriptor, target: ActionStatus, error: Optional[str] = None) -> ActionDescriptor:
    current = action.lifecycle_status
    if not can_transition(current, target):
        raise InvalidTransition(f"Cannot move action {action.id} from {current.value} to {target.value}")

    if target == ActionStatus.FAILED:
        return action.model_copy(update={"status": target, "error": error or "Unknown error"})
    return action.model_copy(update={"status": target, "error": None})


def mark_processing(action: ActionDescriptor) -> ActionDescriptor:
    """Recorded the moment a human approves, before anything executes. Terminal actions are returned as-is."""
    if action.is_terminal:
        logger.info("[ACTIONS] %s already %s, not re-submitting", action.id, action.lifecycle_status.value)
        return action
    return transition(action, ActionStatus.PROCESSING)


def mark_declined(action: ActionDescriptor) -> ActionDescriptor:
    if action.is_terminal:
        return action
    return transition(action, ActionStatus.DECLINED)


def mark_outcome(action: ActionDescriptor, result: ExecutionResult) -> ActionDescriptor:
    if result.success:
        return transition(action, ActionStatus.APPROVED)
    return transition(action, ActionStatus.FAILED, error=result.error)
