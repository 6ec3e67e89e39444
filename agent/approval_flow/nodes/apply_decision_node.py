# nodes/apply_decision_node.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from actions.formatter import format_decline
from actions.lifecycle import mark_declined, mark_processing
from models.action_item import ActionDescriptor, ActionStatus

if TYPE_CHECKING:
    from agent.approval_flow.state import ApprovalState

logger = logging.getLogger(__name__)

REPROMPT = "Sorry, I didn't catch that. Reply yes to go ahead or no to cancel."
UNKNOWN_ACTION = "I couldn't find that action, it may already be handled."


def apply_decision(state: "ApprovalState") -> "ApprovalState":
    """Record processing/declined transitions for the parsed decision. Nothing executes here."""
    decision = state.get("decision") or {"kind": "unknown"}
    kind = decision.get("kind")
    actions: List[ActionDescriptor] = [ActionDescriptor.from_proposal(a) for a in state.get("actions") or []]
    messages: List[str] = []

    if kind in ("approve_all", "decline_all"):
        targets = {a.id for a in actions if a.lifecycle_status == ActionStatus.PROPOSED}
    elif kind in ("approve", "decline"):
        targets = {a.id for a in actions
                   if a.id == decision.get("action_id") and a.lifecycle_status == ActionStatus.PROPOSED}
        if not targets:
            messages.append(UNKNOWN_ACTION)
    else:
        targets = set()
        messages.append(REPROMPT)

    approving = kind in ("approve_all", "approve")
    updated = []
    for action in actions:
        if action.id in targets:
            action = mark_processing(action) if approving else mark_declined(action)
        updated.append(action)

    if targets and not approving:
        messages.append(format_decline(len(targets)))
    logger.info("[ACTIONS] Decision %s applied to %d actions", kind, len(targets))

    state["actions"] = [a.to_action() for a in updated]
    state["messages"] = messages
    return state
