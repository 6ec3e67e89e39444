# agent/chat_confirmation.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from actions.executor import ActionExecutor
from actions.formatter import format_decline
from actions.lifecycle import mark_outcome, mark_processing
from agent.confirmation_detector import describe_pending_actions, detect_confirmation
from models.action_item import ActionDescriptor, ActionStatus
from models.execution_result import BatchResult
from observability.obs import span_step
from store.pending_actions_store import PendingActionsStore

logger = logging.getLogger(__name__)

ALREADY_HANDLED = "Those actions were already handled."


class ConfirmationReply(BaseModel):
    type: Literal["confirm", "decline"]
    message: str
    batch: Optional[BatchResult] = None
    # final descriptors (approved / failed) after a confirm
    actions: Optional[List[Dict[str, Any]]] = None


def _approve(action: ActionDescriptor) -> ActionDescriptor:
    if action.lifecycle_status == ActionStatus.PROCESSING:
        return action
    return mark_processing(action)


def _decline(owner_id: str, entry, pending: PendingActionsStore) -> ConfirmationReply:
    # a confirm holding the lock is already executing; too late to cancel
    if not entry.lock.acquire(blocking=False):
        logger.info("[PENDING] Decline from %s ignored, batch already executing", owner_id)
        return ConfirmationReply(type="decline", message=ALREADY_HANDLED)
    try:
        if pending.get(owner_id) is not entry:
            return ConfirmationReply(type="decline", message=ALREADY_HANDLED)
        count = len(entry.actions)
        pending.clear(owner_id)
        logger.info("[PENDING] User %s declined %s", owner_id, describe_pending_actions(entry.actions))
        return ConfirmationReply(type="decline", message=format_decline(count))
    finally:
        entry.lock.release()


def _confirm(owner_id: str, entry, pending: PendingActionsStore, executor: ActionExecutor) -> ConfirmationReply:
    with entry.lock:
        # a concurrent confirmation may have run and cleared this batch while we waited
        if pending.get(owner_id) is not entry:
            return ConfirmationReply(type="confirm", message=ALREADY_HANDLED)

        logger.info("[PENDING] User %s confirmed %s", owner_id, describe_pending_actions(entry.actions))
        actions = [_approve(ActionDescriptor.from_proposal(a)) for a in entry.actions]
        pending.replace_actions(owner_id, [a.to_action() for a in actions])

        batch = executor.execute_batch(actions, owner_id)

        recorded = []
        for action, result in zip(actions, batch.results):
            if action.lifecycle_status == ActionStatus.PROCESSING:
                action = mark_outcome(action, result)
            recorded.append(action.to_action())
        pending.replace_actions(owner_id, recorded)
        pending.clear(owner_id)

    return ConfirmationReply(type="confirm", message=executor.format_results(batch), batch=batch, actions=recorded)


def handle_chat_confirmation(
    owner_id: str,
    message: str,
    pending: PendingActionsStore,
    executor: Optional[ActionExecutor] = None,
) -> Optional[ConfirmationReply]:
    """
    Turn a typed "yes"/"no" into execution or cancellation of the owner's pending actions.
    Returns None when the message isn't a confirmation; the caller then hands it to the assistant.
    """
    entry = pending.get(owner_id)
    signal = detect_confirmation(message, has_pending=entry is not None)
    if signal.type == "none":
        return None

    with span_step("chat_confirmation", kind="node", decision=signal.type, pattern=signal.pattern):
        if signal.type == "decline":
            return _decline(owner_id, entry, pending)

        if executor is None:
            from actions.service import get_executor
            executor = get_executor()
        return _confirm(owner_id, entry, pending, executor)
