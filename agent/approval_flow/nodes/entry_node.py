# nodes/entry_node.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from models.action_item import ActionDescriptor

if TYPE_CHECKING:
    from agent.approval_flow.state import ApprovalState

logger = logging.getLogger(__name__)


def approval_entry(state: "ApprovalState") -> "ApprovalState":
    """Normalise raw proposals into descriptors (fresh ids, no status)."""
    actions = []
    for proposal in state.get("proposals") or []:
        if not isinstance(proposal, Mapping):
            logger.warning("[ACTIONS] Dropping malformed proposal: %r", proposal)
            continue
        actions.append(ActionDescriptor.from_proposal(proposal).to_action())

    state["actions"] = actions
    state["decision"] = None
    state["messages"] = []
    state["batch"] = None
    return state
