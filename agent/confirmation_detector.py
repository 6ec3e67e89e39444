# agent/confirmation_detector.py
"""
Classifies a short chat reply as confirming or declining the pending actions.
Only meaningful while the owner has something pending.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)

MAX_CONFIRMATION_LENGTH = 50


def _exact(*phrases: str) -> List[re.Pattern]:
    return [re.compile(rf"^{re.escape(p)}$", re.IGNORECASE) for p in phrases]


STRONG_AFFIRMATIVE = _exact(
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay",
    "confirm", "confirmed", "approve", "approved", "accept", "accepted",
)

ACTION_PHRASES = _exact(
    "go ahead", "do it", "proceed", "execute", "run it", "make it happen",
    "let's do it", "lets do it", "sounds good", "perfect", "great",
    "that's fine", "thats fine", "fine", "alright", "all right",
)

DECLINE = _exact(
    "no", "nope", "nah", "cancel", "stop", "don't", "dont", "never mind", "nevermind",
    "decline", "reject", "skip", "abort", "forget it", "no thanks", "no thank you",
)

CONTEXTUAL_AFFIRMATIVE = [
    re.compile(r"^yes,?\s*(please|do it|go ahead)?$", re.IGNORECASE),
    re.compile(r"^yeah,?\s*(sure|do it|go ahead)?$", re.IGNORECASE),
    re.compile(r"^sure,?\s*(thing|go ahead)?$", re.IGNORECASE),
    re.compile(r"^ok,?\s*(do it|go ahead|sounds good)?$", re.IGNORECASE),
]

CONTEXTUAL_DECLINE = [
    re.compile(r"^no,?\s*(thanks|don't|cancel)?$", re.IGNORECASE),
    re.compile(r"^not?\s*(now|yet|today)$", re.IGNORECASE),
]

AFFIRMATIVE_WORDS = {"yes", "yeah", "yep", "yup", "sure", "ok", "okay", "confirm", "proceed", "approved"}
DECLINE_WORDS = {"no", "nope", "nah", "cancel", "stop", "decline", "reject"}

NEW_REQUEST_INDICATORS = [
    re.compile(r"^(create|add|make|delete|remove|update|change|set|move|schedule)", re.IGNORECASE),
    re.compile(r"^(help me|can you|please|i want|i need|show me|list|find)", re.IGNORECASE),
    re.compile(r"\?$"),
]


class ConfirmationSignal(BaseModel):
    type: Literal["confirm", "decline", "none"]
    confidence: float = 0.0
    pattern: Optional[str] = None
    reason: Optional[str] = None

    model_config = {"frozen": True}


def _none(reason: str) -> ConfirmationSignal:
    return ConfirmationSignal(type="none", confidence=0.0, reason=reason)


# Checked in order; first hit wins
_TABLES = (
    (STRONG_AFFIRMATIVE, "confirm", 1.0, "strong_affirmative"),
    (ACTION_PHRASES, "confirm", 1.0, "action_phrase"),
    (DECLINE, "decline", 1.0, "decline"),
    (CONTEXTUAL_AFFIRMATIVE, "confirm", 0.9, "contextual_affirmative"),
    (CONTEXTUAL_DECLINE, "decline", 0.9, "contextual_decline"),
)


def detect_confirmation(message: Any, has_pending: bool = False) -> ConfirmationSignal:
    if not has_pending:
        return _none("no_pending_actions")
    if not message or not isinstance(message, str):
        return _none("invalid_message")

    text = message.strip().lower()
    if len(text) > MAX_CONFIRMATION_LENGTH:
        return _none("message_too_long")

    for patterns, kind, confidence, name in _TABLES:
        if any(p.match(text) for p in patterns):
            logger.debug("[CONFIRM] %s match: %r", name, text)
            return ConfirmationSignal(type=kind, confidence=confidence, pattern=name)

    # short replies: any clear yes/no word decides
    words = text.split()
    if len(words) <= 3:
        for word in words:
            if word in AFFIRMATIVE_WORDS:
                return ConfirmationSignal(type="confirm", confidence=0.8, pattern="partial_word")
            if word in DECLINE_WORDS:
                return ConfirmationSignal(type="decline", confidence=0.8, pattern="partial_word")

    return _none("no_match")


def is_likely_new_request(message: Optional[str]) -> bool:
    if not message:
        return False
    text = message.strip().lower()
    return any(p.search(text) for p in NEW_REQUEST_INDICATORS)


def describe_pending_actions(actions: Sequence[Mapping[str, Any]]) -> str:
    """'2 create tasks, 1 sync calendar_event' style summary of what is waiting."""
    if not actions:
        return "No pending actions"

    counts: Dict[str, int] = {}
    for action in actions:
        label = str(action.get("type") or "").replace("_", " ", 1)
        counts[label] = counts.get(label, 0) + 1

    return ", ".join(f"{n} {label}{'s' if n > 1 else ''}" for label, n in counts.items())
