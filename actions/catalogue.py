# actions/catalogue.py
"""
Closed catalogue of action variants.

Every ActionType has exactly one ActionSpec describing what the validator,
the dependency resolver and the executor need to know about it. Adding an
ActionType without a spec fails at import time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple

from models.action_item import ActionType

EntityKind = Literal["task", "goal"]

# Id-style fields are read from the top level of `data` only, never from `data.updates`
ID_FIELDS = frozenset({"taskId", "goalId"})


@dataclass(frozen=True)
class DependencySlot:
    """A field that may hold the pending sentinel, resolved to the latest `kind` created in the batch."""
    field: str
    kind: EntityKind
    message: str


@dataclass(frozen=True)
class ActionSpec:
    type: ActionType
    required_fields: Tuple[str, ...] = ()
    entity_kind: Optional[EntityKind] = None   # kind of entity the action touches
    creates: Optional[EntityKind] = None       # kind of entity a success produces (feeds the resolver)
    dependency_slots: Tuple[DependencySlot, ...] = field(default_factory=tuple)


CATALOGUE: Dict[ActionType, ActionSpec] = {
    spec.type: spec
    for spec in (
        ActionSpec(ActionType.CREATE_TASK, ("title", "category"), entity_kind="task", creates="task"),
        ActionSpec(ActionType.UPDATE_TASK, ("taskId",), entity_kind="task"),
        ActionSpec(ActionType.DELETE_TASK, ("taskId",), entity_kind="task"),
        ActionSpec(ActionType.DELETE_ALL_TASKS, (), entity_kind="task"),
        ActionSpec(ActionType.CREATE_GOAL, ("title",), entity_kind="goal", creates="goal"),
        ActionSpec(ActionType.UPDATE_GOAL, ("goalId",), entity_kind="goal"),
        ActionSpec(ActionType.DELETE_GOAL, ("goalId",), entity_kind="goal"),
        ActionSpec(ActionType.DELETE_ALL_GOALS, (), entity_kind="goal"),
        ActionSpec(
            ActionType.SYNC_CALENDAR_EVENT,
            ("taskId",),
            entity_kind="task",
            dependency_slots=(DependencySlot("taskId", "task", "No task was created to sync to calendar"),),
        ),
        ActionSpec(ActionType.SYNC_BULK_CALENDAR, (), entity_kind="task"),
    )
}


def get_spec(action_type: ActionType) -> ActionSpec:
    return CATALOGUE[action_type]


def _check_complete() -> None:
    missing = [t.value for t in ActionType if t not in CATALOGUE]
    if missing:
        raise RuntimeError(f"Action types without a catalogue entry: {', '.join(missing)}")


_check_complete()
