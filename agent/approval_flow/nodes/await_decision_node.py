# nodes/await_decision_node.py
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict

from langgraph.types import interrupt

from agent.confirmation_detector import describe_pending_actions, detect_confirmation

if TYPE_CHECKING:
    from agent.approval_flow.state import ApprovalState


def parse_reply(reply: Any) -> Dict[str, Any]:
    """
    Structured reply: {"decision": "approve"|"decline", "action_id": "..."} targets one action.
    Free text goes through the confirmation detector and applies to all proposed actions.
    """
    if isinstance(reply, Mapping):
        decision = reply.get("decision")
        if decision in ("approve", "decline") and reply.get("action_id"):
            return {"kind": decision, "action_id": str(reply["action_id"])}
        if decision in ("approve", "decline"):
            return {"kind": f"{decision}_all"}
        return {"kind": "unknown"}

    signal = detect_confirmation(str(reply or ""), has_pending=True)
    if signal.type == "confirm":
        return {"kind": "approve_all"}
    if signal.type == "decline":
        return {"kind": "decline_all"}
    return {"kind": "unknown"}


def await_decision_node(state: "ApprovalState") -> "ApprovalState":
    """
    Interrupt node: pauses with the still-proposed actions, resumes with the user's reply.
    Everything before interrupt(...) runs again on resume, so no side effects here.
    """
    proposed = [a for a in state.get("actions") or [] if not a.get("status")]

    reply = interrupt(
        {
            "type": "action_approval",
            "question": f"Shall I go ahead with {describe_pending_actions(proposed)}?",
            "actions": proposed,
            "messages": list(state.get("messages") or []),
        }
    )

    state["decision"] = parse_reply(reply)
    return state
