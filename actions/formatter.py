# actions/formatter.py
"""
Human-readable sentences for execution outcomes. Pure functions, no I/O.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from models.execution_result import BatchResult, ExecutionResult

BULK_DELETES = ("delete_all_tasks", "delete_all_goals")


def _as_wire(batch: Union[BatchResult, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(batch, BatchResult):
        return batch.to_wire()
    return dict(batch)


def _past_tense(action_type: str) -> str:
    # "create_task" -> "created task"; only the first underscore becomes a space
    phrase = action_type.replace("_", " ", 1)
    return phrase.replace("create", "created", 1).replace("update", "updated", 1).replace("delete", "deleted", 1)


def _single_success(result: Mapping[str, Any]) -> str:
    action_type = result.get("actionType") or ""
    data = result.get("data") or {}

    if action_type == "delete_all_tasks":
        return f"Done! Deleted all {data.get('deletedCount') or 0} tasks."
    if action_type == "delete_all_goals":
        return f"Done! Deleted all {data.get('deletedCount') or 0} goals."
    if action_type == "sync_calendar_event":
        return f'Done! Synced "{data.get("taskTitle") or "task"}" to your Google Calendar.'
    if action_type == "sync_bulk_calendar":
        return f"Done! {data.get('message') or 'Calendar sync complete.'}"
    return f'Done! Successfully {_past_tense(action_type)} "{data.get("title") or "item"}".'


def _bulk_delete_sentence(results: List[Mapping[str, Any]]) -> str:
    parts = []
    for action_type, noun in (("delete_all_tasks", "tasks"), ("delete_all_goals", "goals")):
        hit = next((r for r in results if r.get("actionType") == action_type), None)
        if hit is not None:
            parts.append(f"{(hit.get('data') or {}).get('deletedCount') or 0} {noun}")
    return f"Done! Deleted {' and '.join(parts)}."


def format_results(batch: Union[BatchResult, Mapping[str, Any]]) -> str:
    """
    One sentence summarising a batch. Accepts a BatchResult or its wire mapping
    ({results: [...], summary: {total, succeeded, failed}}).
    """
    wire = _as_wire(batch)
    results: List[Mapping[str, Any]] = list(wire.get("results") or [])
    summary = wire.get("summary") or {}
    total = summary.get("total", len(results))
    succeeded = summary.get("succeeded", sum(1 for r in results if r.get("success")))
    failed = summary.get("failed", total - succeeded)

    if total == 0:
        return "No actions were executed."

    if failed == 0:
        if total == 1:
            return _single_success(results[0])
        if any(r.get("actionType") in BULK_DELETES for r in results):
            return _bulk_delete_sentence(results)
        return f"Done! Successfully completed all {total} actions."

    if succeeded == 0:
        first_error = results[0].get("error") if results else None
        return f"Failed to complete any actions. {first_error or 'Unknown error'}"

    errors = ", ".join(str(r.get("error")) for r in results if not r.get("success"))
    return f"Completed {succeeded} of {total} actions. {failed} failed: {errors}"


# ---------- Interactive approval messages ----------

def format_action_outcome(action_type: str, result: Union[ExecutionResult, Mapping[str, Any]]) -> str:
    """Chat reply after a single approved action ran."""
    if isinstance(result, ExecutionResult):
        success, error = result.success, result.error
    else:
        success, error = bool(result.get("success")), result.get("error")

    if not success:
        return f"❌ Oops! I couldn't complete that action: {error or 'Unknown error'}. Please try again."

    if "create" in action_type:
        verb = "created"
    elif "update" in action_type:
        verb = "updated"
    elif "delete" in action_type:
        verb = "deleted"
    elif "sync" in action_type:
        verb = "synced"
    else:
        verb = "completed"
    item = "goal" if "goal" in action_type else "task"
    return f"✅ Perfect! I've {verb} the {item} successfully. Check your dashboard!"


def format_decline(count: int = 1) -> str:
    if count > 1:
        return "No problem! All actions cancelled. I'm here if you need anything else!"
    return "No worries! I've cancelled that action. Ask me anything else! 😊"
