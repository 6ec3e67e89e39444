# actions/errors.py
from __future__ import annotations


class ActionError(Exception):
    """Base for every failure converted into a `{success: False}` result at the action boundary."""
    code = "action_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Validation (never reaches execution) ---

class ActionValidationError(ActionError):
    code = "validation_error"


class InvalidAction(ActionValidationError):
    pass


class MissingActionData(ActionValidationError):
    def __init__(self, message: str = "Missing action data"):
        super().__init__(message)


class MissingRequiredField(ActionValidationError):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


# --- Intra-batch dependencies ---

class DependencyError(ActionError):
    code = "dependency_error"


class UnresolvedDependency(DependencyError):
    def __init__(self, message: str, *, field: str, kind: str):
        super().__init__(message)
        self.field = field
        self.kind = kind


# --- Store outcomes ---

class NotFoundOrUnauthorized(ActionError):
    code = "not_found"


class ConcurrentModification(ActionError):
    code = "conflict"


# --- External services ---

class ExternalServiceError(ActionError):
    code = "external_service_error"


class CalendarNotConnected(ExternalServiceError):
    def __init__(self, message: str = "Google Calendar not connected. Please reconnect with Google to enable calendar sync."):
        super().__init__(message)


# --- Fallbacks ---

class UnknownActionType(ActionError):
    code = "unknown_action_type"

    def __init__(self, message: str = "Unknown action type"):
        super().__init__(message)


class InvalidTransition(ActionError):
    code = "invalid_transition"
