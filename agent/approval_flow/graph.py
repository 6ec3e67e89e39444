# agent/approval_flow/graph.py
from __future__ import annotations

from langgraph.checkpoint.memory import InMemorySaver
from langgraph.graph import StateGraph, END

from actions.executor import ActionExecutor
from agent.approval_flow.state import ApprovalState
from agent.approval_flow.nodes.entry_node import approval_entry
from agent.approval_flow.nodes.await_decision_node import await_decision_node
from agent.approval_flow.nodes.apply_decision_node import apply_decision
from agent.approval_flow.nodes.execute_node import make_execute_node


# -------------------------------
# Routing logic
# -------------------------------

def _statuses(state: ApprovalState) -> list:
    return [a.get("status") for a in state.get("actions") or []]


def route_after_entry(state: ApprovalState) -> str:
    return "await_decision" if state.get("actions") else "end"


def route_after_decision(state: ApprovalState) -> str:
    """
    - any action approved just now -> execute
    - still something proposed      -> await_decision
    - otherwise                     -> end
    """
    statuses = _statuses(state)
    if "processing" in statuses:
        return "execute"
    if None in statuses:
        return "await_decision"
    return "end"


def route_after_execute(state: ApprovalState) -> str:
    return "await_decision" if None in _statuses(state) else "end"


# -------------------------------
# Build app
# -------------------------------

def build_approval_flow_app(executor: ActionExecutor, checkpointer=None):
    """
    approval_flow:

      entry
        -> await_decision            (interrupt: proposals out, reply in)
        -> apply_decision            (processing / declined transitions)
        -> execute?                  (one batch for everything approved)
        -> await_decision while anything is still proposed, else END
    """
    builder = StateGraph(ApprovalState)

    builder.add_node("entry", approval_entry)
    builder.add_node("await_decision", await_decision_node)
    builder.add_node("apply_decision", apply_decision)
    builder.add_node("execute", make_execute_node(executor))

    builder.set_entry_point("entry")

    builder.add_conditional_edges(
        "entry",
        route_after_entry,
        {"await_decision": "await_decision", "end": END},
    )
    builder.add_edge("await_decision", "apply_decision")
    builder.add_conditional_edges(
        "apply_decision",
        route_after_decision,
        {"execute": "execute", "await_decision": "await_decision", "end": END},
    )
    builder.add_conditional_edges(
        "execute",
        route_after_execute,
        {"await_decision": "await_decision", "end": END},
    )

    # interrupts need a checkpointer to resume from
    return builder.compile(checkpointer=checkpointer or InMemorySaver())
