# actions/executor.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from actions import formatter, validator
from actions.catalogue import ActionSpec
from actions.errors import ActionError, ActionValidationError, DependencyError
from actions.handlers import ActionHandlers
from actions.resolver import resolve_dependencies
from models.action_item import TERMINAL_STATUSES, ActionDescriptor, ActionStatus
from models.execution_result import BatchResult, ExecutionResult
from observability.obs import safe_update_current_span_io, span_step
from store.entity_store import EntityStore

logger = logging.getLogger(__name__)

ActionInput = Union[Mapping[str, Any], ActionDescriptor]


def _prior_status(action: Mapping[str, Any]) -> Optional[ActionStatus]:
    raw = action.get("status")
    if not raw:
        return None
    try:
        return ActionStatus(raw)
    except ValueError:
        return None


def _skipped(action: Mapping[str, Any], status: ActionStatus, action_type: Optional[str]) -> ExecutionResult:
    """A terminal action handed back to the executor: report, never re-run."""
    if status == ActionStatus.APPROVED:
        return ExecutionResult(success=True, action_type=action_type, skipped=True)
    return ExecutionResult(
        success=False,
        action_type=action_type,
        error=str(action.get("error") or f"Action already {status.value}"),
        code="invalid_transition",
        skipped=True,
    )


class ActionExecutor:
    """
    Runs approved actions against the stores, one at a time, in submission order.

    Each action is isolated: whatever goes wrong becomes a failed result and the
    loop moves on. Only a missing owner aborts the batch (nothing is scoped then).
    """

    def __init__(self, tasks: EntityStore, goals: EntityStore, calendar):
        self.handlers = ActionHandlers(tasks, goals, calendar)

    # ---------- Public API ----------

    def validate_action(self, action: Any) -> Dict[str, Any]:
        return validator.validate_action(action)

    def format_results(self, batch: Union[BatchResult, Mapping[str, Any]]) -> str:
        return formatter.format_results(batch)

    def execute_action(self, action: ActionInput, owner_id: str) -> ExecutionResult:
        return self.execute_batch([action], owner_id).results[0]

    def execute_batch(self, actions: Sequence[ActionInput], owner_id: str) -> BatchResult:
        if not owner_id:
            raise ValueError("owner_id is required to execute actions")

        logger.info("[ACTIONS] Executing %d actions for user %s", len(actions), owner_id)
        history: List[Tuple[Optional[ActionSpec], ExecutionResult]] = []

        with span_step("execute_batch", kind="executor", action_count=len(actions)):
            for action in actions:
                if isinstance(action, ActionDescriptor):
                    action = action.to_action()
                spec, result = self._run_one(action, owner_id, history)
                history.append((spec, result))

        batch = BatchResult.from_results([r for _, r in history])
        logger.info("[ACTIONS] Batch complete: %d/%d succeeded",
                    batch.summary.succeeded, batch.summary.total)
        return batch

    # ---------- One action ----------

    def _run_one(self, action: Any, owner_id: str, history) -> Tuple[Optional[ActionSpec], ExecutionResult]:
        raw = action.get("type") if isinstance(action, Mapping) else None
        raw_type = None if raw is None else str(raw)

        if isinstance(action, Mapping):
            status = _prior_status(action)
            if status in TERMINAL_STATUSES:
                logger.info("[ACTIONS] %s already %s, skipping", raw_type, status.value)
                return None, _skipped(action, status, raw_type)

        try:
            spec = validator.check_action(action)
        except ActionValidationError as e:
            logger.info("[ACTIONS] Validation failed for %s: %s", raw_type, e.message)
            return None, ExecutionResult.fail(raw_type, e.message, e.code)

        try:
            resolved = resolve_dependencies(action, spec, history)
        except DependencyError as e:
            return spec, ExecutionResult.fail(raw_type, e.message, e.code)

        try:
            with span_step(f"action.{spec.type.value}", kind="action", action_type=spec.type.value):
                safe_update_current_span_io(input={"data": resolved["data"]}, redact=True)
                data = self.handlers.dispatch(spec.type, resolved["data"], owner_id)
                safe_update_current_span_io(output=data, redact=True)
        except ActionError as e:
            logger.info("[ACTIONS] %s failed: %s", spec.type.value, e.message)
            return spec, ExecutionResult.fail(raw_type, e.message, e.code)
        except Exception as e:
            logger.exception("[ACTIONS] %s crashed", spec.type.value)
            return spec, ExecutionResult.fail(raw_type, str(e), "internal_error")

        logger.info("[ACTIONS] %s executed successfully", spec.type.value)
        return spec, ExecutionResult.ok(raw_type, data)
