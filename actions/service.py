# actions/service.py
"""
Entry points the rest of the application calls: validate, execute one, execute a
batch, format. Each call is a langfuse span tagged with the owner.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from actions import formatter, validator
from actions.executor import ActionExecutor, ActionInput
from models.execution_result import BatchResult, ExecutionResult
from observability.obs import instrument_io
from observability.telemetry import owner_trace_attrs
from shared.config import STORE_BACKEND

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_executor() -> ActionExecutor:
    """Process-wide executor wired to the configured backend."""
    from shared.google_calendar.calendar_service import CalendarService

    if STORE_BACKEND == "memory":
        from store.memory_store import InMemoryEntityStore
        tasks, goals = InMemoryEntityStore("task"), InMemoryEntityStore("goal")
    elif STORE_BACKEND == "firestore":
        from store.goal_item_store import GoalStore
        from store.task_item_store import TaskStore
        tasks, goals = TaskStore(), GoalStore()
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {STORE_BACKEND!r}")

    logger.info("[ACTIONS] Executor ready (backend=%s)", STORE_BACKEND)
    return ActionExecutor(tasks, goals, CalendarService())


def _summarize_batch(batch: BatchResult) -> Dict[str, Any]:
    return {"summary": batch.summary.model_dump(), "codes": [r.code for r in batch.results if r.code]}


@instrument_io(
    name="actions.validate",
    meta={"operation": "validate_action"},
    input_fn=lambda action: {"type": action.get("type") if isinstance(action, Mapping) else None},
    output_fn=lambda out: out,
)
def validate_action(action: Any) -> Dict[str, Any]:
    return validator.validate_action(action)


@instrument_io(
    name="actions.execute",
    meta={"operation": "execute_action"},
    input_fn=lambda action, owner_id, **_: {"action": action},
    output_fn=lambda r: r.to_wire(),
    redact=True,
)
def execute_action(action: ActionInput, owner_id: str, *, conversation_id: Optional[str] = None,
                   executor: Optional[ActionExecutor] = None) -> ExecutionResult:
    with owner_trace_attrs(owner_id, conversation_id=conversation_id, tags=("actions",)):
        return (executor or get_executor()).execute_action(action, owner_id)


@instrument_io(
    name="actions.execute_batch",
    meta=lambda actions, owner_id, **_: {"operation": "execute_batch", "action_count": len(actions)},
    input_fn=lambda actions, owner_id, **_: {"actions": list(actions)},
    output_fn=_summarize_batch,
    redact=True,
)
def execute_batch(actions: Sequence[ActionInput], owner_id: str, *, conversation_id: Optional[str] = None,
                  executor: Optional[ActionExecutor] = None) -> BatchResult:
    with owner_trace_attrs(owner_id, conversation_id=conversation_id, tags=("actions",)):
        return (executor or get_executor()).execute_batch(actions, owner_id)


def format_results(batch: Union[BatchResult, Mapping[str, Any]]) -> str:
    return formatter.format_results(batch)
