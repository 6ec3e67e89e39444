# actions/validator.py
from __future__ import annotations

from typing import Any, Dict, Mapping

from actions.catalogue import ID_FIELDS, ActionSpec, get_spec
from actions.errors import ActionValidationError, InvalidAction, MissingActionData, MissingRequiredField
from models.action_item import ActionType


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def check_action(action: Any) -> ActionSpec:
    """
    Shape check run once per action, before any state transition or store call.
    Returns the catalogue spec for the action's type; raises an ActionValidationError otherwise.
    """
    if not isinstance(action, Mapping):
        raise InvalidAction("Invalid action object")

    raw_type = action.get("type")
    action_type = ActionType.parse(raw_type)
    if action_type is None:
        raise InvalidAction(f"Invalid action type: {raw_type}")

    data = action.get("data")
    if not isinstance(data, Mapping):
        raise MissingActionData()

    updates = data.get("updates")
    if updates is not None and not isinstance(updates, Mapping):
        raise InvalidAction("Invalid updates payload")
    updates = updates or {}

    spec = get_spec(action_type)
    for field in spec.required_fields:
        if is_present(data.get(field)):
            continue
        if field not in ID_FIELDS and is_present(updates.get(field)):
            continue
        raise MissingRequiredField(field)

    return spec


def validate_action(action: Any) -> Dict[str, Any]:
    """Returns {"valid": True} or {"valid": False, "error": str, "code": str}. Pure."""
    try:
        check_action(action)
    except ActionValidationError as e:
        return {"valid": False, "error": e.message, "code": e.code}
    return {"valid": True}
