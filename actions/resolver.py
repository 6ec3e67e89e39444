# actions/resolver.py
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from actions.catalogue import ActionSpec, EntityKind
from actions.errors import UnresolvedDependency
from models.execution_result import ExecutionResult

logger = logging.getLogger(__name__)

PENDING = "pending"

# (spec of an already executed action, its result), in batch order
History = Sequence[Tuple[Optional[ActionSpec], ExecutionResult]]


def latest_created_id(history: History, kind: EntityKind) -> Optional[str]:
    """Id of the most recent successful action in this batch that created an entity of `kind`."""
    for spec, result in reversed(history):
        if spec is None or spec.creates != kind or not result.success:
            continue
        entity_id = (result.data or {}).get("id")
        if entity_id:
            return str(entity_id)
    return None


def resolve_dependencies(action: Mapping[str, Any], spec: ActionSpec, history: History) -> Dict[str, Any]:
    """
    Returns a copy of `action` with every pending dependency slot replaced by a
    concrete id produced earlier in the same batch. The input is never mutated.
    """
    data = dict(action.get("data") or {})
    for slot in spec.dependency_slots:
        if data.get(slot.field) != PENDING:
            continue
        entity_id = latest_created_id(history, slot.kind)
        if entity_id is None:
            logger.info("[ACTIONS] %s.%s is pending but no %s was created in this batch",
                        spec.type.value, slot.field, slot.kind)
            raise UnresolvedDependency(slot.message, field=slot.field, kind=slot.kind)
        logger.info("[ACTIONS] Linked %s.%s to %s %s", spec.type.value, slot.field, slot.kind, entity_id)
        data[slot.field] = entity_id

    resolved = dict(action)
    resolved["data"] = data
    return resolved
