# nodes/execute_node.py
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from actions.executor import ActionExecutor
from actions.formatter import format_action_outcome
from actions.lifecycle import mark_outcome
from models.action_item import ActionDescriptor, ActionStatus
from observability.obs import span_step

if TYPE_CHECKING:
    from agent.approval_flow.state import ApprovalState


def make_execute_node(executor: ActionExecutor) -> Callable[["ApprovalState"], "ApprovalState"]:

    def execute_node(state: "ApprovalState") -> "ApprovalState":
        """Submit every processing action as one batch; record approved/failed per action."""
        actions = [ActionDescriptor.from_proposal(a) for a in state.get("actions") or []]
        approved = [a for a in actions if a.lifecycle_status == ActionStatus.PROCESSING]
        if not approved:
            return state

        with span_step("approval.execute", kind="node", node="execute", action_count=len(approved)):
            # the descriptors are in `processing`; hand the executor the bare proposals
            batch = executor.execute_batch(
                [{"id": a.id, "type": a.type, "data": a.data} for a in approved],
                state["owner_id"],
            )

        outcomes = {a.id: r for a, r in zip(approved, batch.results)}
        messages = list(state.get("messages") or [])
        updated = []
        for action in actions:
            result = outcomes.get(action.id)
            if result is not None:
                action = mark_outcome(action, result)
                messages.append(format_action_outcome(action.type, result))
            updated.append(action)

        if len(approved) > 1:
            messages.append(executor.format_results(batch))

        state["actions"] = [a.to_action() for a in updated]
        state["messages"] = messages
        state["batch"] = batch.to_wire()
        return state

    return execute_node
